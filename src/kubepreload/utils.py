#!/usr/bin/env python
# -*- encoding: utf-8 -*-
import random
import re
import string
from typing import Any

_DURATION_UNITS = {
    'ms': 0.001,
    's': 1,
    'm': 60,
    'h': 60 * 60,
}

_DURATION_COMPONENT_REGEX = re.compile(r'([0-9]+(?:\.[0-9]+)?)(ms|s|m|h)')


def parse_duration(duration: str) -> float:
    """ Parse a duration like 2s, 1m30s or 1.5h and return the number of seconds
    """
    duration = duration.strip()
    if duration == '0':
        return 0.0

    position = 0
    seconds = 0.0
    for match in _DURATION_COMPONENT_REGEX.finditer(duration):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(duration):
        raise ValueError('Invalid duration {}.'.format(duration))

    return seconds


def random_string(length: int, characters: str = string.ascii_lowercase + string.digits) -> str:
    return ''.join(random.choice(characters) for _ in range(length))


def key_get(obj: Any, key: str, *args) -> Any:
    if len(args) > 1:
        raise TypeError('key_get expected at most three arguments, got {}.'.format(2 + len(args)))

    position = obj
    for component in key.split('.'):
        try:
            position = position[component]
        except (KeyError, TypeError):
            if args:
                return args[0]
            raise KeyError('Key {} does not exist.'.format(key)) from None

    return position
