# Retry with exponential backoff for calls against the legislative API
import logging
import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar

import requests
from tenacity import (Retrying, before_sleep_log, retry_if_exception_type,
                      retry_if_not_exception_type, stop_after_attempt, wait_exponential)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.5
    factor: float = 2.0
    retry_on: Tuple[Type[BaseException], ...] = (requests.RequestException,)
    # a request that already hit its timeout is not worth repeating
    give_up_on: Tuple[Type[BaseException], ...] = (requests.Timeout,)
    sleep: Callable[[float], None] = time.sleep

    def retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=self.factor),
            retry=retry_if_exception_type(self.retry_on) & retry_if_not_exception_type(self.give_up_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self.sleep,
            reraise=True,
        )

    def call(self, fn: Callable[..., T], *args, **kwargs) -> T:
        return self.retrying()(fn, *args, **kwargs)
