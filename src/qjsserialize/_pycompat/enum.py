from __future__ import annotations

import sys
from enum import EnumMeta

# From py3.12, `42 in SomeIntEnum` returns True/False. Before that it raises
# TypeError for non-member values, which we need to test raw bytes from the
# stream against tag enums.
if sys.version_info < (3, 12):
    from enum import IntEnum as _IntEnum

    class ContainsValueEnumMeta(EnumMeta):
        def __contains__(cls, value: object) -> bool:
            return value in cls._value2member_map_

    class IntEnum(_IntEnum, metaclass=ContainsValueEnumMeta):
        def __str__(self) -> str:
            return str(self._value_)

else:
    from enum import IntEnum as IntEnum  # noqa: F401  # re-export
