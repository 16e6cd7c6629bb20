"""Storage backends the pipeline steps operate through."""

from refresher.accessors.base import PatchAccessor
from refresher.accessors.emulator import EmulatorPatchAccessor
from refresher.accessors.sftp import SftpPatchAccessor

__all__ = ["PatchAccessor", "EmulatorPatchAccessor", "SftpPatchAccessor"]
