# Copyright 2018 Datawire. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License

import os

from setuptools import find_packages, setup

HERE = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(HERE, "routegen.version"), "r") as version_file:
    Version = version_file.read().split("\n")[0]

with open(os.path.join(HERE, "requirements.txt"), "r") as requirements_file:
    requirements = [line for line in requirements_file.read().split("\n") if line]

setup(
    name="routegen",
    version=Version,
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
    data_files=[("", ["routegen.version"])],
    entry_points={
        "console_scripts": [
            "routegen=routegen_cli.routegen:main",
        ]
    },
    keywords=["haproxy", "router", "routes", "tls", "maps"],
    classifiers=[],
)
