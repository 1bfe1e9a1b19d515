#
# This file is distributed under the MIT License. See LICENSE.md for details.
#

from setuptools import find_namespace_packages, setup

setup(
    name="wasm-opt-py",
    version="0.1.0",
    description="Run wasm-opt command lines in-process through libbinaryen",
    package_dir={"": "python"},
    packages=find_namespace_packages("python", include=["wasm_opt", "wasm_opt.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=open("requirements.txt", encoding="utf-8").readlines(),  # noqa: SIM115
    extras_require={"test": ["pytest"]},
    scripts=["scripts/wasm-opt-py"],
)
