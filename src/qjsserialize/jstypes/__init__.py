"""Python representations of the JavaScript types in the QuickJS serialization format."""

from __future__ import annotations

from qjsserialize.jstypes.jsarray import JSArray as JSArray
from qjsserialize.jstypes.jsbuffers import TYPED_ARRAY_TYPES as TYPED_ARRAY_TYPES
from qjsserialize.jstypes.jsbuffers import DataFormat as DataFormat
from qjsserialize.jstypes.jsbuffers import DataType as DataType
from qjsserialize.jstypes.jsbuffers import (
    ItemSizeJSArrayBufferError as ItemSizeJSArrayBufferError,
)
from qjsserialize.jstypes.jsbuffers import JSArrayBuffer as JSArrayBuffer
from qjsserialize.jstypes.jsbuffers import JSBigInt64Array as JSBigInt64Array
from qjsserialize.jstypes.jsbuffers import JSBigUint64Array as JSBigUint64Array
from qjsserialize.jstypes.jsbuffers import JSFloat32Array as JSFloat32Array
from qjsserialize.jstypes.jsbuffers import JSFloat64Array as JSFloat64Array
from qjsserialize.jstypes.jsbuffers import JSInt8Array as JSInt8Array
from qjsserialize.jstypes.jsbuffers import JSInt16Array as JSInt16Array
from qjsserialize.jstypes.jsbuffers import JSInt32Array as JSInt32Array
from qjsserialize.jstypes.jsbuffers import JSTypedArray as JSTypedArray
from qjsserialize.jstypes.jsbuffers import JSUint8Array as JSUint8Array
from qjsserialize.jstypes.jsbuffers import JSUint8ClampedArray as JSUint8ClampedArray
from qjsserialize.jstypes.jsbuffers import JSUint16Array as JSUint16Array
from qjsserialize.jstypes.jsbuffers import JSUint32Array as JSUint32Array
from qjsserialize.jstypes.jsobject import JSObject as JSObject
from qjsserialize.jstypes.jsundefined import JSUndefined as JSUndefined
from qjsserialize.jstypes.jsundefined import JSUndefinedType as JSUndefinedType
