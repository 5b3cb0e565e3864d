from __future__ import annotations

"""HMAC-SHA1 request signing for the fingerprint provider."""

import base64
import hashlib
import hmac
import time
from dataclasses import dataclass
from typing import Callable, Dict, Tuple

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class SigningContext:
    method: str
    uri: str
    access_key: str
    data_type: str
    signature_version: str
    timestamp: int

    def string_to_sign(self) -> str:
        return "\n".join(
            [
                self.method,
                self.uri,
                self.access_key,
                self.data_type,
                self.signature_version,
                str(self.timestamp),
            ]
        )


def sign(context: SigningContext, access_secret: str) -> str:
    digest = hmac.new(
        access_secret.encode("utf-8"),
        context.string_to_sign().encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True, slots=True)
class SignedRequest:
    url: str
    data: Dict[str, str]
    files: Dict[str, Tuple[str, bytes, str]]
    context: SigningContext


class SignedRequestBuilder:
    """Assembles one signed multipart submission per segment."""

    def __init__(
        self,
        *,
        host: str,
        access_key: str,
        access_secret: str,
        endpoint_path: str = "/v1/identify",
        data_type: str = "audio",
        signature_version: str = "1",
        clock: Clock = time.time,
    ) -> None:
        self._host = host
        self._access_key = access_key
        self._access_secret = access_secret
        self._endpoint_path = endpoint_path if endpoint_path.startswith("/") else f"/{endpoint_path}"
        self._data_type = data_type
        self._signature_version = signature_version
        self._clock = clock

    @property
    def url(self) -> str:
        host = self._host.rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return f"{host}{self._endpoint_path}"

    def context(self) -> SigningContext:
        return SigningContext(
            method="POST",
            uri=self._endpoint_path,
            access_key=self._access_key,
            data_type=self._data_type,
            signature_version=self._signature_version,
            timestamp=int(self._clock()),
        )

    def build(self, sample: bytes, *, filename: str = "sample.wav") -> SignedRequest:
        context = self.context()
        data = {
            "access_key": self._access_key,
            "data_type": self._data_type,
            "signature_version": self._signature_version,
            "signature": sign(context, self._access_secret),
            "timestamp": str(context.timestamp),
            "sample_bytes": str(len(sample)),
        }
        files = {"sample": (filename, sample, "audio/wav")}
        return SignedRequest(url=self.url, data=data, files=files, context=context)


__all__ = ["Clock", "SigningContext", "SignedRequest", "SignedRequestBuilder", "sign"]
