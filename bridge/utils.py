#
# Copyright Elasticsearch B.V. and/or licensed to Elasticsearch B.V. under one
# or more contributor license agreements. Licensed under the Elastic License 2.0;
# you may not use this file except in compliance with the Elastic License 2.0.
#
import asyncio
import ssl
from datetime import datetime, timezone
from typing import Any, Awaitable, List, Optional, Tuple, Union

import dateutil.parser as parser

from bridge.logger import logger

DEFAULT_TIMEOUT = 60


def parse_datetime_string(datetime: str) -> datetime:
    return parser.parse(datetime)


def iso_utc(when: Optional[datetime] = None) -> str:
    if when is None:
        when = datetime.now(timezone.utc)
    return when.isoformat()


def with_utc_tz(ts: datetime) -> datetime:
    """Ensure the timestmap has a timezone of UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    else:
        return ts.astimezone(timezone.utc)


def nested_get_from_dict(
    dictionary: Any,
    keys: Union[List[str], Tuple[str, ...]],
    default: Any = None,
) -> Any:
    def nested_get(dictionary_, keys_, default_=None):
        if dictionary_ is None:
            return default_

        if not keys_:
            return dictionary_

        if not isinstance(dictionary_, dict):
            return default_

        return nested_get(dictionary_.get(keys_[0]), keys_[1:], default_)

    return nested_get(dictionary, keys, default)


def get_pem_format(key: str, postfix: str = "-----END CERTIFICATE-----") -> str:
    """Convert key into PEM format.

    Args:
        key (str): Key in raw format.
        postfix (str): Certificate footer.

    Returns:
        string: PEM format
    """
    pem_format = ""
    reverse_split = postfix.count(" ")
    if key.count(postfix) == 1:
        key = key.replace(" ", "\n")
        key = " ".join(key.split("\n", reverse_split))
        key = " ".join(key.rsplit("\n", reverse_split))
        pem_format = key
    elif key.count(postfix) > 1:
        for cert in key.split(postfix)[:-1]:
            cert = cert.strip() + "\n" + postfix
            cert = cert.replace(" ", "\n")
            cert = " ".join(cert.split("\n", reverse_split))
            cert = " ".join(cert.rsplit("\n", reverse_split))
            pem_format += cert + "\n"
    return pem_format


def ssl_context(certificate: str) -> ssl.SSLContext:
    """Convert string to pem format and create a SSL context

    Args:
        certificate (str): certificate in string format

    Returns:
        ssl_context: SSL context with certificate
    """
    certificate = get_pem_format(certificate)
    ctx = ssl.create_default_context()
    ctx.load_verify_locations(cadata=certificate)
    return ctx


class CancellableContext:
    """Cancellation signal shared by every remote call of one sync job.

    Each call made through `run` is bounded by `timeout` seconds. Calling
    `cancel` aborts the calls in flight and flags the context, which the
    callers check before starting any new work.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self._cancelled = False
        self._tasks = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def run(self, aw: Awaitable, timeout: Optional[float] = None) -> Any:
        if self._cancelled:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise asyncio.CancelledError()

        task = asyncio.ensure_future(aw)
        self._tasks.add(task)
        try:
            return await asyncio.wait_for(
                task, timeout=self.timeout if timeout is None else timeout
            )
        finally:
            self._tasks.discard(task)

    def cancel(self, sig=None):
        if sig:
            logger.debug(f"Caught {sig}. Cancelling remote calls...")
        else:
            logger.debug("Cancelling remote calls...")

        self._cancelled = True
        for task in self._tasks:
            task.cancel()
