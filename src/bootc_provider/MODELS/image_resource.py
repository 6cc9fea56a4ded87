"""
Model of a bootc_image build request and its result.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..FRAMEWORK.values import Unknown, is_unknown

DEFAULT_DISK_SIZE = "1G"
DEFAULT_OUTPUT_FILENAME = "disk.qcow2"


class ImageResourceModel(BaseModel):
    """
    Attributes of one bootc_image. Immutable: any change means a new build.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source_image: str
    output_path: str
    output_filename: str = DEFAULT_OUTPUT_FILENAME
    disk_size: str = DEFAULT_DISK_SIZE

    filesystem: Optional[str] = None
    root_size: Optional[str] = None
    # The list and its elements are checked when the bootc arguments are assembled.
    kargs: Optional[Union[List[Any], Unknown]] = None
    root_ssh_authorized_keys: Optional[str] = None
    target_imgref: Optional[str] = None
    disable_selinux: bool = False
    generic_image: bool = True
    bootloader: Optional[str] = None

    image_path: Optional[str] = None

    @classmethod
    def from_values(cls, values: Dict[str, Any]) -> "ImageResourceModel":
        """
        Builds the model from planned or stored attribute values.

        Null values and unknown scalars fall back to the field default. An
        unknown kargs list is kept so the build can reject it.
        """
        known = {
            name: value
            for name, value in values.items()
            if value is not None and (name == "kargs" or not is_unknown(value))
        }
        return cls(**known)

    def to_state(self) -> Dict[str, Any]:
        return self.model_dump()
