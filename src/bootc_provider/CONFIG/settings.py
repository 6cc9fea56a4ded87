# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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
# limitations under the License.

"""
Provider settings resolved from the environment and an optional .env file.
"""
import os
from typing import Dict, Literal, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel

# settings field -> environment variable
ENV_KEYS: Dict[str, str] = {
    "bridge_library": "BOOTC_BRIDGE_LIBRARY",
    "truncate_binary": "BOOTC_TRUNCATE_BINARY",
    "qemu_img_binary": "BOOTC_QEMU_IMG_BINARY",
    "log_level": "BOOTC_LOG_LEVEL",
    "log_format": "BOOTC_LOG_FORMAT",
}


class ProviderSettings(BaseModel):
    """
    Locations of the external tools and logging preferences.
    """
    bridge_library: str = "libbootc_bridge.so"
    truncate_binary: str = "truncate"
    qemu_img_binary: str = "qemu-img"
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    @classmethod
    def from_env(cls,
                 env_file: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None) -> "ProviderSettings":
        """
        Builds settings from the process environment, then the .env file.

        Values from ``env_file`` override the process environment.

        :param env_file: Optional path to a .env file.
        :param environ: Environment to read instead of ``os.environ``.
        :return: Resolved settings.
        """
        merged: Dict[str, Optional[str]] = dict(os.environ if environ is None else environ)
        if env_file and os.path.exists(env_file):
            merged.update(dotenv_values(env_file))

        values = {}
        for field_name, env_name in ENV_KEYS.items():
            value = merged.get(env_name)
            if value:
                values[field_name] = value.strip()
        if "log_format" in values:
            values["log_format"] = values["log_format"].lower()
        return cls(**values)
