"""
Decoder configuration.
"""
from dataclasses import dataclass, replace
import os
from typing import Mapping, Optional, Tuple

DIAMETER_PORT = 3868
DIAMETER_SCTP_PPID = 46


def _ports(value: str) -> Tuple[int, ...]:
    ports = tuple(int(p) for p in value.replace(" ", "").split(",") if p)
    for port in ports:
        if not 0 < port < 65536:
            raise ValueError(f"invalid port: {port}")
    return ports


@dataclass(frozen=True)
class DecoderConfig:
    """Decoder and capture configuration."""
    tcp_ports: Tuple[int, ...] = (DIAMETER_PORT,)
    sctp_ports: Tuple[int, ...] = (DIAMETER_PORT,)
    sctp_ppid: int = DIAMETER_SCTP_PPID
    run_subdissectors: bool = True
    dictionary_path: Optional[str] = None  # None: bundled base dictionary
    max_request_age_us: Optional[int] = None  # None: unbounded answer matching

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DecoderConfig":
        """Build a config from DIAMSCOPE_* environment variables."""
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("DIAMSCOPE_DICTIONARY"):
            config = replace(config, dictionary_path=env["DIAMSCOPE_DICTIONARY"])
        if env.get("DIAMSCOPE_TCP_PORTS"):
            config = replace(config, tcp_ports=_ports(env["DIAMSCOPE_TCP_PORTS"]))
        if env.get("DIAMSCOPE_SCTP_PORTS"):
            config = replace(config, sctp_ports=_ports(env["DIAMSCOPE_SCTP_PORTS"]))
        if env.get("DIAMSCOPE_NO_SUBDISSECTORS", "").lower() in ("1", "true", "yes"):
            config = replace(config, run_subdissectors=False)
        if env.get("DIAMSCOPE_MAX_REQUEST_AGE_US"):
            config = replace(config, max_request_age_us=int(env["DIAMSCOPE_MAX_REQUEST_AGE_US"]))
        return config

    def is_diameter_port(self, transport: str, src_port: int, dst_port: int) -> bool:
        ports = self.tcp_ports if transport == "TCP" else self.sctp_ports
        return src_port in ports or dst_port in ports
