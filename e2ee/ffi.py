"""
C-compatible foreign boundary.

Exposes the server and client identities through plain functions that take
NUL-terminated UTF-8 ``char *`` values and opaque handles, and hand back
newly allocated strings. Handles and strings are integers (``0`` is NULL),
so the same functions can be registered as C callbacks through
``exported_functions()``.

Ownership rules:

* every handle returned by a ``*_new*`` function must be released with the
  matching ``e2ee_server_free``/``e2ee_client_free``;
* every non-NULL string returned by an encrypt/decrypt/get function must be
  released with ``e2ee_free_string``;
* releasing twice, or using a handle or string after release, raises
  ``BoundaryViolation``. That is a programming error, never a NULL result.
  String addresses are never handed out twice, so a stale pointer cannot
  release a newer string.

Preconditions (not checked): every ``char *`` argument is non-NULL and
holds valid UTF-8. Engine failures of any kind come back as NULL; the
detail is logged at DEBUG level and dropped.
"""

from __future__ import annotations

import ctypes
import itertools
import logging
import threading
from functools import wraps
from typing import TYPE_CHECKING, Any, Union

from e2ee.client.identity import ClientIdentity
from e2ee.common.exceptions import BoundaryViolation, E2eeError, EncodingError
from e2ee.common.models import KeySize
from e2ee.server.identity import ServerIdentity

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

NULL = 0

CString = Union[bytes, bytearray, ctypes.c_char_p, int]


class _OwnershipTable:
    """Objects currently owned by foreign callers, keyed by address."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._objects: dict[int, Any] = {}
        self._lock = threading.RLock()

    def add(self, address: int, obj: Any) -> int:
        with self._lock:
            self._objects[address] = obj
        return address

    def get(self, address: int, expected: type | None = None) -> Any:
        with self._lock:
            obj = self._objects.get(address)
        if obj is None or (expected is not None and not isinstance(obj, expected)):
            msg = f"{self.kind} {address:#x} is not live (released or never issued)"
            raise BoundaryViolation(msg)
        return obj

    def pop(self, address: int, expected: type | None = None) -> Any:
        with self._lock:
            obj = self._objects.get(address)
            if obj is not None and (expected is None or isinstance(obj, expected)):
                del self._objects[address]
                return obj
        msg = f"{self.kind} {address:#x} released twice or never issued"
        raise BoundaryViolation(msg)

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)


class _StringTable(_OwnershipTable):
    """Live strings keyed by their ``char *`` address.

    Released addresses are remembered, and a fresh buffer that lands on one
    of them is parked instead of handed out. A stale pointer therefore never
    names a newer string, and releasing it again always raises.
    """

    def __init__(self) -> None:
        super().__init__("string")
        self._released: set[int] = set()
        self._parked: list[ctypes.Array[ctypes.c_char]] = []

    @staticmethod
    def _new_buffer(data: bytes) -> tuple[ctypes.Array[ctypes.c_char], int]:
        buffer = ctypes.create_string_buffer(data)
        return buffer, ctypes.addressof(buffer)

    def allocate(self, data: bytes) -> int:
        with self._lock:
            buffer, address = self._new_buffer(data)
            while address in self._released:
                self._parked.append(buffer)
                buffer, address = self._new_buffer(data)
            self._objects[address] = buffer
        return address

    def pop(self, address: int, expected: type | None = None) -> Any:
        with self._lock:
            obj = super().pop(address, expected)
            self._released.add(address)
        return obj

    @property
    def parked_count(self) -> int:
        with self._lock:
            return len(self._parked)


# Handle numbers are never reused, so a stale handle cannot alias a new one
_handle_ids = itertools.count(0x1000, 0x10)
_handles = _OwnershipTable("handle")
_strings = _StringTable()


def live_handle_count() -> int:
    return len(_handles)


def live_string_count() -> int:
    return len(_strings)


def _address(value: int | None) -> int:
    return value or NULL


def _read_c_string(value: CString) -> str:
    if isinstance(value, ctypes.c_char_p):
        raw = value.value or b""
    elif isinstance(value, int):
        raw = ctypes.string_at(value)
    else:
        raw = bytes(value).split(b"\0", 1)[0]
    return raw.decode("utf-8")


def _new_handle(obj: ServerIdentity | ClientIdentity) -> int:
    return _handles.add(next(_handle_ids), obj)


def _new_string(text: str) -> int:
    data = text.encode("utf-8")
    if b"\0" in data:
        msg = "Result contains an interior NUL byte"
        raise EncodingError(msg)
    return _strings.allocate(data)


def read_string(address: int) -> str | None:
    """Copy a string returned by this boundary without releasing it."""
    address = _address(address)
    if address == NULL:
        return None
    _strings.get(address)
    return ctypes.string_at(address).decode("utf-8")


def null_on_error(func: Callable[..., int]) -> Callable[..., int]:
    """Collapse engine errors into a NULL return."""

    @wraps(func)
    def wrapper(*args: Any) -> int:
        try:
            return func(*args)
        except E2eeError as err:
            logger.debug("%s failed: %s", func.__name__, err)
            return NULL

    return wrapper


@null_on_error
def e2ee_server_new(key_size: int) -> int:
    """Generate a server identity; NULL for an unsupported size or failure."""
    try:
        size = KeySize.parse(key_size)
    except ValueError:
        logger.debug("e2ee_server_new: unsupported key size %r", key_size)
        return NULL
    return _new_handle(ServerIdentity.generate(size))


@null_on_error
def e2ee_server_new_from_pem(private_key_pem: CString, public_key_pem: CString) -> int:
    identity = ServerIdentity.load_from_pem(
        _read_c_string(private_key_pem), _read_c_string(public_key_pem)
    )
    return _new_handle(identity)


@null_on_error
def e2ee_client_new_from_public_pem(public_key_pem: CString) -> int:
    return _new_handle(ClientIdentity(_read_c_string(public_key_pem)))


@null_on_error
def e2ee_server_encrypt(server: int, message: CString) -> int:
    identity = _handles.get(_address(server), ServerIdentity)
    return _new_string(identity.encrypt(_read_c_string(message)))


@null_on_error
def e2ee_client_encrypt(client: int, message: CString) -> int:
    identity = _handles.get(_address(client), ClientIdentity)
    return _new_string(identity.encrypt(_read_c_string(message)))


@null_on_error
def e2ee_server_decrypt(server: int, ciphertext: CString) -> int:
    identity = _handles.get(_address(server), ServerIdentity)
    return _new_string(identity.decrypt(_read_c_string(ciphertext)))


def e2ee_server_get_public_key_pem(server: int) -> int:
    identity = _handles.get(_address(server), ServerIdentity)
    return _new_string(identity.public_key_pem)


def e2ee_server_get_private_key_pem(server: int) -> int:
    identity = _handles.get(_address(server), ServerIdentity)
    return _new_string(identity.private_key_pem)


def e2ee_server_free(server: int) -> None:
    """Release a server handle. NULL is ignored."""
    if _address(server) != NULL:
        _handles.pop(_address(server), ServerIdentity)


def e2ee_client_free(client: int) -> None:
    """Release a client handle. NULL is ignored."""
    if _address(client) != NULL:
        _handles.pop(_address(client), ClientIdentity)


def e2ee_free_string(string: int) -> None:
    """Release a string returned by this boundary. NULL is ignored."""
    if _address(string) != NULL:
        _strings.pop(_address(string))


e2ee_server_free_string = e2ee_free_string


def take_string(address: int) -> str | None:
    """Copy a returned string and release it."""
    text = read_string(address)
    if text is not None:
        e2ee_free_string(address)
    return text


class _OwnedHandle:
    """Move-only Python wrapper around a boundary handle.

    ``release()`` consumes the wrapper; any later call raises
    ``BoundaryViolation``.
    """

    _free: Callable[[int], None]

    def __init__(self, address: int) -> None:
        if _address(address) == NULL:
            msg = "Cannot wrap a NULL handle"
            raise BoundaryViolation(msg)
        self._address: int | None = address

    @property
    def address(self) -> int:
        if self._address is None:
            msg = f"{type(self).__name__} used after release"
            raise BoundaryViolation(msg)
        return self._address

    @property
    def released(self) -> bool:
        return self._address is None

    def release(self) -> None:
        address = self.address
        self._address = None
        type(self)._free(address)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.released:
            self.release()


class OwnedServerHandle(_OwnedHandle):
    _free = staticmethod(e2ee_server_free)

    @classmethod
    def generate(cls, key_size: int) -> OwnedServerHandle | None:
        address = e2ee_server_new(key_size)
        return cls(address) if address else None

    @classmethod
    def from_pem(cls, private_key_pem: str, public_key_pem: str) -> OwnedServerHandle | None:
        address = e2ee_server_new_from_pem(
            private_key_pem.encode("utf-8"), public_key_pem.encode("utf-8")
        )
        return cls(address) if address else None

    def encrypt(self, message: str) -> str | None:
        return take_string(e2ee_server_encrypt(self.address, message.encode("utf-8")))

    def decrypt(self, ciphertext: str) -> str | None:
        return take_string(e2ee_server_decrypt(self.address, ciphertext.encode("utf-8")))

    def public_key_pem(self) -> str | None:
        return take_string(e2ee_server_get_public_key_pem(self.address))

    def private_key_pem(self) -> str | None:
        return take_string(e2ee_server_get_private_key_pem(self.address))


class OwnedClientHandle(_OwnedHandle):
    _free = staticmethod(e2ee_client_free)

    @classmethod
    def from_pem(cls, public_key_pem: str) -> OwnedClientHandle | None:
        address = e2ee_client_new_from_public_pem(public_key_pem.encode("utf-8"))
        return cls(address) if address else None

    def encrypt(self, message: str) -> str | None:
        return take_string(e2ee_client_encrypt(self.address, message.encode("utf-8")))


_SIGNATURES: dict[str, tuple[Callable[..., Any], Any, tuple[Any, ...]]] = {
    "e2ee_server_new": (e2ee_server_new, ctypes.c_void_p, (ctypes.c_int,)),
    "e2ee_server_new_from_pem": (
        e2ee_server_new_from_pem,
        ctypes.c_void_p,
        (ctypes.c_char_p, ctypes.c_char_p),
    ),
    "e2ee_client_new_from_public_pem": (
        e2ee_client_new_from_public_pem,
        ctypes.c_void_p,
        (ctypes.c_char_p,),
    ),
    "e2ee_server_encrypt": (
        e2ee_server_encrypt,
        ctypes.c_void_p,
        (ctypes.c_void_p, ctypes.c_char_p),
    ),
    "e2ee_client_encrypt": (
        e2ee_client_encrypt,
        ctypes.c_void_p,
        (ctypes.c_void_p, ctypes.c_char_p),
    ),
    "e2ee_server_decrypt": (
        e2ee_server_decrypt,
        ctypes.c_void_p,
        (ctypes.c_void_p, ctypes.c_char_p),
    ),
    "e2ee_server_get_public_key_pem": (
        e2ee_server_get_public_key_pem,
        ctypes.c_void_p,
        (ctypes.c_void_p,),
    ),
    "e2ee_server_get_private_key_pem": (
        e2ee_server_get_private_key_pem,
        ctypes.c_void_p,
        (ctypes.c_void_p,),
    ),
    "e2ee_server_free": (e2ee_server_free, None, (ctypes.c_void_p,)),
    "e2ee_client_free": (e2ee_client_free, None, (ctypes.c_void_p,)),
    "e2ee_free_string": (e2ee_free_string, None, (ctypes.c_void_p,)),
}

_exported: dict[str, Any] = {}
_exported_lock = threading.Lock()


def exported_functions() -> dict[str, Any]:
    """C function pointers (``CFUNCTYPE`` objects) for every boundary call.

    The returned objects are cached for the life of the process so the
    pointers stay valid for the embedding host.
    """
    with _exported_lock:
        if not _exported:
            for name, (func, restype, argtypes) in _SIGNATURES.items():
                prototype = ctypes.CFUNCTYPE(restype, *argtypes)
                _exported[name] = prototype(func)
        return dict(_exported)
