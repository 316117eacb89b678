"""Exceptions raised by the tunnel protocol, client and server."""


class TunnelError(Exception):
    """Base class for every error raised by this package."""


class ProtocolError(TunnelError):
    """A packet could not be encoded, decoded, encrypted or decrypted."""


class TunConfigError(TunnelError):
    """The TUN interface or the system networking could not be configured."""