"""The main public API of qjsserialize."""

from __future__ import annotations

from qjsserialize._errors import (
    AtomOutOfRangeDecodeQJSSerializeError as AtomOutOfRangeDecodeQJSSerializeError,
)
from qjsserialize._errors import (
    BadTypedArrayTagDecodeQJSSerializeError as BadTypedArrayTagDecodeQJSSerializeError,
)
from qjsserialize._errors import DecodeQJSSerializeError as DecodeQJSSerializeError
from qjsserialize._errors import (
    DepthExceededDecodeQJSSerializeError as DepthExceededDecodeQJSSerializeError,
)
from qjsserialize._errors import (
    DepthExceededEncodeQJSSerializeError as DepthExceededEncodeQJSSerializeError,
)
from qjsserialize._errors import EncodeQJSSerializeError as EncodeQJSSerializeError
from qjsserialize._errors import (
    OverflowDecodeQJSSerializeError as OverflowDecodeQJSSerializeError,
)
from qjsserialize._errors import QJSSerializeError as QJSSerializeError
from qjsserialize._errors import (
    SizeMismatchDecodeQJSSerializeError as SizeMismatchDecodeQJSSerializeError,
)
from qjsserialize._errors import (
    StructureDecodeQJSSerializeError as StructureDecodeQJSSerializeError,
)
from qjsserialize._errors import (
    TruncatedDecodeQJSSerializeError as TruncatedDecodeQJSSerializeError,
)
from qjsserialize._errors import (
    TypeMismatchBindQJSSerializeError as TypeMismatchBindQJSSerializeError,
)
from qjsserialize._errors import (
    UnhandledValueEncodeQJSSerializeError as UnhandledValueEncodeQJSSerializeError,
)
from qjsserialize._errors import (
    UnsupportedTagDecodeQJSSerializeError as UnsupportedTagDecodeQJSSerializeError,
)
from qjsserialize._errors import (
    VersionMismatchDecodeQJSSerializeError as VersionMismatchDecodeQJSSerializeError,
)
from qjsserialize._pycompat.typing import Buffer as Buffer
from qjsserialize._pycompat.typing import ReadableBinary as ReadableBinary
from qjsserialize.binding import FieldBinder as FieldBinder
from qjsserialize.binding import bind_object as bind_object
from qjsserialize.constants import DEFAULT_MAX_DEPTH as DEFAULT_MAX_DEPTH
from qjsserialize.constants import SerializationTag as SerializationTag
from qjsserialize.constants import TypedArrayTag as TypedArrayTag
from qjsserialize.decode import Decoder as Decoder
from qjsserialize.decode import DecodeStep as DecodeStep
from qjsserialize.decode import DecodeStepFn as DecodeStepFn
from qjsserialize.decode import DecodeStepObject as DecodeStepObject
from qjsserialize.decode import TagReader as TagReader
from qjsserialize.decode import default_decode_steps as default_decode_steps
from qjsserialize.decode import loads as loads
from qjsserialize.decode import loads_into as loads_into
from qjsserialize.encode import Encoder as Encoder
from qjsserialize.encode import EncodeStep as EncodeStep
from qjsserialize.encode import EncodeStepFn as EncodeStepFn
from qjsserialize.encode import EncodeStepObject as EncodeStepObject
from qjsserialize.encode import TagWriter as TagWriter
from qjsserialize.encode import default_encode_steps as default_encode_steps
from qjsserialize.encode import dumps as dumps
