#!/usr/bin/env python3
"""
code_errors.py - Error taxonomy for S-code / D-code handling

Every decode failure is one of these types. They all derive from
CodeError, which is a ValueError, so callers that only care about
"bad input" can keep catching ValueError.

    FormatError        bad or missing prefix
    DecodeError        malformed base64url or legacy payload text
    IntegrityError     CRC-8 mismatch
    LengthError        wrong payload length
    VersionError       payload written by a newer schema
    MissingFieldError  required field absent at encode time
    RangeError         field outside its encodable range at encode time
"""


class CodeError(ValueError):
    """Base class for all code errors."""


class FormatError(CodeError):
    pass


class DecodeError(CodeError):
    pass


class IntegrityError(CodeError):
    pass


class LengthError(CodeError):
    pass


class VersionError(CodeError):
    """Raised when a payload's schema version is newer than this decoder."""

    def __init__(self, kind: str, version: int, supported: int):
        super().__init__(
            f"{kind} from newer version ({version} > {supported}). "
            f"Please update the app."
        )
        self.version = version
        self.supported = supported


class MissingFieldError(CodeError):
    pass


class RangeError(CodeError):
    pass
