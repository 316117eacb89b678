"""UDP VPN for Linux that tunnels TUN traffic encrypted with AES-256-GCM."""

__version__ = "0.1.0"

__all__ = [
    "client",
    "client_manager",
    "crypt",
    "errors",
    "handlers",
    "packet",
    "protocol",
    "server",
    "simple_server",
    "tun_device",
]