"""
Copyright 2020 EUROCONTROL
==========================================

Redistribution and use in source and binary forms, with or without modification, are permitted
provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this list of conditions
   and the following disclaimer.
2. Redistributions in binary form must reproduce the above copyright notice, this list of
conditions
   and the following disclaimer in the documentation and/or other materials provided with the
   distribution.
3. Neither the name of the copyright holder nor the names of its contributors may be used to
endorse
   or promote products derived from this software without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR
IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND
FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE,
DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER
IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT
OF
THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

==========================================

Editorial note: this license is an instance of the BSD license template as provided by the Open
Source Initiative: http://opensource.org/licenses/BSD-3-Clause

Details on EUROCONTROL: http://www.eurocontrol.int
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import logging

__author__ = "EUROCONTROL (SWIM)"

logger = logging.getLogger(__name__)


def run_hook(hook: Optional[Callable[[Any], Any]], value: Any, description: str) -> Any:
    """
    Invokes a hook on a best-effort basis.
    :param hook: The hook, nothing is done when None.
    :param value: The value handed to the hook.
    :param description: Name of the hook used in the log message.
    :return: What the hook returned, or the unmodified value when the hook returned None or failed.
    """
    if hook is None:
        return value
    try:
        result = hook(value)
    except Exception as error:
        logger.warning("Hook {} failed, keeping the original value: {!r}".format(description, error))
        return value
    return value if result is None else result


class Hooks:
    """
    A pair of optional callables invoked around a codec boundary. Each receives a single value and
    may return a replacement; returning None keeps the value.

    :param before_transform: Called before the conversion.
    :param after_transform: Called after the conversion.
    """

    def __init__(self,
                 before_transform: Optional[Callable[[Any], Any]] = None,
                 after_transform: Optional[Callable[[Any], Any]] = None) -> None:
        self.before_transform = before_transform
        self.after_transform = after_transform

    def before(self, value: Any) -> Any:
        return run_hook(self.before_transform, value, '{}.before_transform'.format(type(self).__name__))

    def after(self, value: Any) -> Any:
        return run_hook(self.after_transform, value, '{}.after_transform'.format(type(self).__name__))


class SourceHooks(Hooks):
    """
    Hooks of a source codec: before_transform sees the raw XML string or JSON value,
    after_transform sees the produced tree.
    """


class OutputHooks(Hooks):
    """
    Hooks of an output codec: before_transform sees the tree about to be written,
    after_transform sees the final XML string or JSON value.
    """
