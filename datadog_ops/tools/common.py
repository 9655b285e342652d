from __future__ import annotations

import logging

import httpx

from ..datetime_parser import EpochOutOfRange, InvalidDatetimeFormat


def clamp_limit(limit: int, upper: int) -> int:
    return max(1, min(limit, upper))


def invalid_datetime(tool: str, exc: InvalidDatetimeFormat, **extra) -> dict:
    logging.warning("%s invalid datetime, value=%r", tool, exc.value)
    return {
        "error": "invalid_datetime",
        "message": str(exc),
        "raw": exc.value,
        **extra,
    }


def request_failed(tool: str, exc: httpx.HTTPError, **extra) -> dict:
    logging.exception("%s datadog request failed: %s", tool, exc)
    return {
        "error": "datadog_request_failed",
        "message": str(exc),
        **extra,
    }


def out_of_range(tool: str, exc: EpochOutOfRange, **extra) -> dict:
    logging.warning("%s epoch out of range, epoch=%s", tool, exc.epoch)
    return {
        "error": "out_of_range",
        "message": str(exc),
        "epoch": exc.epoch,
        **extra,
    }
