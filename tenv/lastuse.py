"""Record and read the last day an installed version was used."""

from __future__ import annotations

import datetime
import os

from tenv.types import Displayer, LogLevel, level_warn_or_debug

FILE_NAME = "last-use.txt"
_DATE_FORMAT = "%Y-%m-%d"


def read(dir_path: str | os.PathLike, displayer: Displayer) -> datetime.date:
    """Return the recorded date, or ``date.min`` when unknown."""
    path = os.path.join(dir_path, FILE_NAME)
    try:
        with open(path, encoding="utf-8") as handle:
            data = handle.read()
    except OSError as err:
        displayer.log(level_warn_or_debug(isinstance(err, FileNotFoundError)), "Unable to read date in file", error=err)
        return datetime.date.min
    try:
        return datetime.datetime.strptime(data, _DATE_FORMAT).date()
    except ValueError as err:
        displayer.log(LogLevel.WARN, "Unable to parse date in file", error=err)
        return datetime.date.min


def write_now(dir_path: str | os.PathLike, displayer: Displayer) -> None:
    path = os.path.join(dir_path, FILE_NAME)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(datetime.date.today().strftime(_DATE_FORMAT))
    except OSError as err:
        displayer.log(LogLevel.WARN, "Unable to write date in file", error=err)