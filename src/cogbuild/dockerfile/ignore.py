from typing import Iterable

from .. import constants


def make_dockerignore(dirs: Iterable[str], files: Iterable[str]) -> str:
    """
    The .dockerignore for a build whose weights were isolated: the usual
    tooling noise, plus every weight dir (recursively) and weight file so
    they are not sent to the main build a second time.
    """
    contents = ""
    for path in dirs:
        contents += f"{path}\n{path}/**/*\n"
    for path in files:
        contents += f"{path}\n"
    return constants.DOCKERIGNORE_HEADER + contents
