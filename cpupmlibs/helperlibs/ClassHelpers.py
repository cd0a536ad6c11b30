# -*- coding: utf-8 -*-
# vim: ts=4 sw=4 tw=100 et ai si
#
# Copyright (C) 2020-2025 Intel Corporation
# SPDX-License-Identifier: BSD-3-Clause
#
# Author: Artem Bityutskiy <artem.bityutskiy@linux.intel.com>

"""
Miscellaneous common helpers for class objects.
"""

from  __future__ import annotations # Remove when switching to Python 3.10+.

from typing import Any, Callable
from cpupmlibs.helperlibs import Logging
from cpupmlibs.helperlibs.Exceptions import Error, ErrorPermissionDenied, ErrorNotFound

_LOG = Logging.getLogger(f"{Logging.MAIN_LOGGER_NAME}.cpupm.{__name__}")

class SimpleCloseContext:
    """
    A base class providing the '__enter__()' and '__exit__()' methods. The '__exit__()' method
    calls 'close()'.
    """

    def close(self):
        """Uninitialize the class object. Supposed to be implemented by the subclass."""

    def __enter__(self):
        """Enter the run-time context."""
        return self

    def __exit__(self, *_: Any):
        """Exit from the runtime context."""
        self.close()

class WrapExceptions:
    """
    Wrap an object and translate exceptions raised by its public methods to project exceptions.

    Exception Translation:
        - PermissionError -> ErrorPermissionDenied
        - FileNotFoundError -> ErrorNotFound
        - Other exceptions derived from 'Exception' -> Error
    """

    def __init__(self, obj: Any, get_err_prefix: Callable[[Any, str], str] | None = None):
        """
        Initialize the class object.

        Args:
            obj: The object to translate exceptions for.
            get_err_prefix: A callable returning the exception message prefix. The arguments are
                            the wrapped object and the name of the method that raised.
        """

        self._obj = obj
        self._get_err_prefix = get_err_prefix
        self._iterable: Any = None

    def _translate(self, name: str, err: Exception) -> Error:
        """Return a project exception object for exception 'err' raised by method 'name'."""

        exc_type: type[Error]
        if isinstance(err, PermissionError):
            exc_type = ErrorPermissionDenied
        elif isinstance(err, FileNotFoundError):
            exc_type = ErrorNotFound
        else:
            exc_type = Error

        errmsg = Error(str(err)).indent(2)
        if self._get_err_prefix:
            msg = f"{self._get_err_prefix(self._obj, name)}:\n{errmsg}"
        else:
            msg = f"method '{name}()' failed:\n{errmsg}"

        kwargs: dict[str, Any] = {}
        if hasattr(err, "errno"):
            kwargs["errno"] = getattr(err, "errno")

        return exc_type(msg, **kwargs)

    def _get_wrapper(self, name: str, method: Callable) -> Callable:
        """Return a version of 'method' with exceptions translated."""

        def _wrapper(*args: Any, **kwargs: Any) -> Any:
            """Call the method and translate its exceptions."""

            try:
                return method(*args, **kwargs)
            except (Error, StopIteration):
                raise
            except Exception as err: # pylint: disable=broad-except
                raise self._translate(name, err) from err

        return _wrapper

    def __getattr__(self, name: str) -> Any:
        """Return attribute 'name' of the wrapped object, wrap exceptions for public methods."""

        attr = getattr(self._obj, name)
        if name.startswith("_") or not callable(attr):
            return attr

        return self._get_wrapper(name, attr)

    def __enter__(self):
        """Enter the run-time context."""

        self._get_wrapper("__enter__", self._obj.__enter__)()
        return self

    def __exit__(self, *args: Any):
        """Exit from the runtime context."""
        return self._get_wrapper("__exit__", self._obj.__exit__)(*args)

    def __iter__(self):
        """Return an iterator for the wrapped object."""

        self._iterable = self._get_wrapper("__iter__", self._obj.__iter__)()
        return self

    def __next__(self):
        """Return the next iteration item."""

        if self._iterable is None:
            raise Error("No iterable object found")

        return self._get_wrapper("__next__", self._iterable.__next__)()

def close(cls_obj: Any,
          close_attrs: list[str] | tuple[str, ...] = tuple(),
          unref_attrs: list[str] | tuple[str, ...] = tuple()):
    """
    Uninitialize a class object by freeing objects referred to by its attributes.

    Args:
        cls_obj: The class object to uninitialize.
        close_attrs: Attribute names referring to objects to close. The 'close()' method of the
                     object is called unless the class object has a '_close_{attr}' attribute set
                     to 'False'. The attribute is set to 'None' afterwards.
        unref_attrs: Attribute names referring to objects created outside the class object. These
                     attributes are just set to 'None'.
    """

    for attr in close_attrs:
        if not hasattr(cls_obj, attr):
            _LOG.warning("close(close_attrs=<attrs>): non-existing attribute '%s' in '%s'",
                         attr, cls_obj)

        obj = getattr(cls_obj, attr, None)
        if not obj:
            continue

        if attr.startswith("_"):
            name = f"_close{attr}"
        else:
            name = f"_close_{attr}"

        run_close = getattr(cls_obj, name, True)
        if run_close not in (True, False):
            _LOG.warning("Bad value of attribute '%s' in '%s'", name, cls_obj)
            _LOG.debug_print_stacktrace()
        elif run_close:
            if hasattr(obj, "close"):
                obj.close()
            else:
                _LOG.debug("No 'close()' method in '%s'", obj)

        setattr(cls_obj, attr, None)

    for attr in unref_attrs:
        if not hasattr(cls_obj, attr):
            _LOG.warning("close(unref_attrs=<attrs>): non-existing attribute '%s' in '%s'",
                         attr, cls_obj)

        if getattr(cls_obj, attr, None):
            setattr(cls_obj, attr, None)
