"""Exception definitions for release-deploy"""

from typing import Optional, Sequence

from ..constants import ErrorCode, EXIT_CODES


class ReleaseDeployError(Exception):
    """Base exception for release-deploy"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code

    @property
    def exit_code(self) -> int:
        """Process exit status the CLI uses for this error"""
        return EXIT_CODES.get(self.error_code, 1)


class ConfigurationError(ReleaseDeployError):
    """Missing or invalid configuration value"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR)


class StorageError(ReleaseDeployError):
    """Unreadable or unwritable filesystem path, or missing directory"""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, ErrorCode.STORAGE_ERROR)
        self.path = path


class ProcessError(ReleaseDeployError):
    """An external command exited non-zero, timed out or could not start"""

    def __init__(self,
                 command: Sequence[str],
                 returncode: int,
                 output: str = "",
                 timed_out: bool = False,
                 message: Optional[str] = None):
        self.command = tuple(command)
        self.returncode = returncode
        self.output = output
        self.timed_out = timed_out

        if message is None:
            cmd_str = " ".join(self.command[:3])
            if len(self.command) > 3:
                cmd_str += " ..."
            if timed_out:
                message = f"{cmd_str} timed out"
            else:
                message = f"{cmd_str} failed (exit {returncode})"

        super().__init__(message, ErrorCode.PROCESS_ERROR)


class PromotionError(ReleaseDeployError):
    """The live alias swap could not complete"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.PROMOTION_ERROR)


class LockError(ReleaseDeployError):
    """Another run holds the deploy lock"""

    def __init__(self, message: str = None):
        if message is None:
            message = "The command is already running in another process."
        super().__init__(message, ErrorCode.LOCK_ERROR)


class HookError(ReleaseDeployError):
    """An extension hook failed while executing"""

    def __init__(self, hook_name: str, message: str):
        super().__init__(f"Hook '{hook_name}' failed: {message}", ErrorCode.HOOK_ERROR)
        self.hook_name = hook_name


class UserCancelledError(ReleaseDeployError):
    """User cancelled the operation"""

    def __init__(self):
        super().__init__("Operation cancelled by user", ErrorCode.USER_CANCELLED)
