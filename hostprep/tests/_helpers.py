# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from hostprep._core import Call


def passing():
    return Call(_print, "all good")


def failing(code: int = 1):
    return Call(_exit, code)


def raising(message: str = "boom"):
    return Call(_raise, message)


def _print(output, message):
    print(message)


def _exit(output, code):
    print(f"failing with {code}")
    raise SystemExit(code)


def _raise(output, message):
    raise RuntimeError(message)
