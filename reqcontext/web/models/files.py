"""
Uploaded file bag.
"""

from typing import Dict, List, Mapping, Optional, Sequence

from starlette.datastructures import UploadFile

from ..core.exceptions import FileFieldMissingError


class FileBag:
    """
    Uploaded files grouped by form field name.

    A field may carry several files (``attachments[]`` style uploads);
    ``array_offset`` selects one of them.
    """

    def __init__(self, source: Optional[Mapping[str, Sequence[UploadFile]]] = None):
        self._files: Dict[str, List[UploadFile]] = {
            name: list(files) for name, files in (source or {}).items() if files
        }

    def get(self, name: str, array_offset: Optional[int] = None) -> UploadFile:
        files = self._files.get(name)
        if not files:
            raise FileFieldMissingError(name, array_offset)

        if array_offset is None:
            return files[0]

        if array_offset < 0 or array_offset >= len(files):
            raise FileFieldMissingError(name, array_offset)
        return files[array_offset]

    def get_all(self) -> Dict[str, List[UploadFile]]:
        return {name: list(files) for name, files in self._files.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._files

    def __len__(self) -> int:
        return len(self._files)
