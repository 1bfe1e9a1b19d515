#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:
    from .options import OptimizationOptions


@dataclass(frozen=True)
class Profile:
    """
    A named bundle of settings, the equivalent of one of wasm-opt's `-O<n>`
    flags. Applying a profile sets the optimize level, the shrink level and
    whether the default pass pipeline runs; other settings are left alone, so
    profiles applied in sequence override each other field by field.
    """

    name: str
    optimize_level: int
    shrink_level: int
    add_default_passes: bool

    @staticmethod
    def by_name(name: str) -> "Profile":
        return _PROFILES[name.removeprefix("-")]

    @staticmethod
    def default() -> "Profile":
        return _PROFILES["O"]

    @staticmethod
    def opt_level_0() -> "Profile":
        return _PROFILES["O0"]

    @staticmethod
    def opt_level_1() -> "Profile":
        return _PROFILES["O1"]

    @staticmethod
    def opt_level_2() -> "Profile":
        return _PROFILES["O2"]

    @staticmethod
    def opt_level_3() -> "Profile":
        return _PROFILES["O3"]

    @staticmethod
    def opt_level_4() -> "Profile":
        return _PROFILES["O4"]

    @staticmethod
    def optimize_for_size() -> "Profile":
        return _PROFILES["Os"]

    @staticmethod
    def optimize_for_size_aggressively() -> "Profile":
        return _PROFILES["Oz"]

    @property
    def flag(self) -> str:
        return f"-{self.name}"

    def apply_to(self, options: "OptimizationOptions") -> None:
        options.passopts.optimize_level = self.optimize_level
        options.passopts.shrink_level = self.shrink_level
        options.passes.add_default_passes = self.add_default_passes


def _make_profiles(*profiles: Profile) -> Dict[str, Profile]:
    return {profile.name: profile for profile in profiles}


# `-O` is the same as `-Os` in wasm-opt
_PROFILES = _make_profiles(
    Profile("O", optimize_level=2, shrink_level=1, add_default_passes=True),
    Profile("O0", optimize_level=0, shrink_level=0, add_default_passes=False),
    Profile("O1", optimize_level=1, shrink_level=0, add_default_passes=True),
    Profile("O2", optimize_level=2, shrink_level=0, add_default_passes=True),
    Profile("O3", optimize_level=3, shrink_level=0, add_default_passes=True),
    Profile("O4", optimize_level=4, shrink_level=0, add_default_passes=True),
    Profile("Os", optimize_level=2, shrink_level=1, add_default_passes=True),
    Profile("Oz", optimize_level=2, shrink_level=2, add_default_passes=True),
)


def profile_flags() -> Dict[str, Profile]:
    """Map each profile-selecting command line flag to its profile"""
    return {profile.flag: profile for profile in _PROFILES.values()}
