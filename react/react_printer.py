"""
Formats resolved values into the strings written into the tree.
"""
import collections.abc
import math


class Printer:
    """String form of scope values, as inserted by contain/attr/classIf."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj) -> str:
        """Public entry point to format a value."""
        handler = self._get_handler(obj)
        return handler(obj)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, str): return self._pformat_str
        if isinstance(obj, collections.abc.Mapping): return self._pformat_mapping
        if isinstance(obj, (list, tuple)): return self._pformat_sequence
        return str

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_primitive,
            float: self._pformat_float,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            list: self._pformat_sequence,
            tuple: self._pformat_sequence,
        }

    def _pformat_str(self, obj):
        return str(obj)

    def _pformat_primitive(self, obj):
        return str(obj)

    def _pformat_float(self, obj):
        if math.isfinite(obj) and obj.is_integer():
            return str(int(obj))
        return str(obj)

    def _pformat_bool(self, obj):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj):
        return ''

    def _pformat_sequence(self, obj):
        return ','.join(self.pformat(item) for item in obj)

    def _pformat_mapping(self, obj):
        return '[object]'
