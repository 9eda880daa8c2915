"""Decorators for command functions."""

import asyncio
import functools
import time
import traceback
from collections.abc import Callable

import typer

from focusbloom.services.api.errors import APIError, SessionValidationError
from focusbloom.utils import exit_codes
from focusbloom.utils.logger import get_logger
from focusbloom.utils.ui.formatters import format_error


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = exit_codes.ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


def command_wrapper(func: Callable):
    """Run sync or async commands with logging and uniform error exits."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if asyncio.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            logger.info("command completed: %s (%.3fs)", cmd, time.monotonic() - start)
            return result

        except typer.Exit:
            raise

        except AppError as e:
            logger.error(
                "command failed: %s - %s [%s]", cmd, e, exit_codes.get_exit_code_name(e.exit_code)
            )
            format_error(str(e))
            raise typer.Exit(code=e.exit_code) from e

        except SessionValidationError as e:
            logger.error(
                "command failed: %s - invalid input: %s [%s]",
                cmd,
                e,
                exit_codes.get_exit_code_name(exit_codes.ERROR_INVALID_ARGS),
            )
            format_error(str(e))
            raise typer.Exit(code=exit_codes.ERROR_INVALID_ARGS) from e

        except APIError as e:
            logger.error(
                "command failed: %s - API error: %s [%s]",
                cmd,
                e,
                exit_codes.get_exit_code_name(exit_codes.ERROR_NETWORK),
            )
            format_error(f"API request failed: {e}")
            raise typer.Exit(code=exit_codes.ERROR_NETWORK) from e

        except Exception as e:
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                time.monotonic() - start,
                str(e),
                traceback.format_exc(),
            )
            format_error(f"An unexpected error occurred: {str(e)}")
            raise typer.Exit(code=exit_codes.ERROR_GENERAL) from e

    return wrapper
