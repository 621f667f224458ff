"""Command line interface."""
import binascii
from dataclasses import replace
import logging
from typing import Optional, Tuple

import click

from analysis.engine import AnalysisEngine
from capture.config import DecoderConfig
from capture.decoder import DiameterDecoder
from dictionary.exceptions import DiamscopeError
from models.message import RawMessage

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _build_config(dictionary: Optional[str],
                  ports: Tuple[int, ...],
                  no_subdissectors: bool,
                  max_request_age_us: Optional[int] = None) -> DecoderConfig:
    try:
        config = DecoderConfig.from_env()
    except ValueError as e:
        raise click.ClickException(f"Invalid DIAMSCOPE_* environment setting: {e}")
    if dictionary:
        config = replace(config, dictionary_path=dictionary)
    if ports:
        config = replace(config, tcp_ports=tuple(ports), sctp_ports=tuple(ports))
    if no_subdissectors:
        config = replace(config, run_subdissectors=False)
    if max_request_age_us is not None:
        config = replace(config, max_request_age_us=max_request_age_us)
    return config


def _make_decoder(config: DecoderConfig) -> DiameterDecoder:
    try:
        return DiameterDecoder(config=config)
    except DiamscopeError as e:
        raise click.ClickException(str(e))


def _write(payload: str, output: Optional[str]) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(payload)
            f.write("\n")
    else:
        click.echo(payload)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Diameter message decoder and transaction analyzer."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.option("--dictionary", "dictionary", type=click.Path(dir_okay=False),
              help="JSON dictionary document (default: bundled base dictionary)")
@click.option("--port", "ports", type=int, multiple=True,
              help="TCP/SCTP port carrying Diameter (repeatable, default 3868)")
@click.option("--no-subdissectors", is_flag=True, help="Do not run AVP sub-decoders")
@click.option("--max-request-age-us", type=int, default=None,
              help="Reject answer matches against requests older than this")
@click.option("--limit", "limit", type=int, default=0, show_default=True,
              help="Max messages to decode (0 = no limit)")
@click.option("--format", "format", type=click.Choice(["report", "messages", "summary"]),
              default="report", show_default=True,
              help="report: JSON analysis report; messages: one JSON object per message; "
                   "summary: one info line per message")
@click.option("--output", "output", type=click.Path(dir_okay=False),
              help="Write output to file")
def decode(filepath: str,
           dictionary: Optional[str],
           ports: Tuple[int, ...],
           no_subdissectors: bool,
           max_request_age_us: Optional[int],
           limit: int,
           format: str,
           output: Optional[str]):
    """
    Decode Diameter messages from a PCAP/PCAPNG file.

    Example:
      diamscope decode capture.pcapng --port 3868 --format summary
    """
    # scapy is slow to import; only capture-file decoding needs it
    from capture.pcap_source import PcapMessageSource

    config = _build_config(dictionary, ports, no_subdissectors, max_request_age_us)
    decoder = _make_decoder(config)
    engine = AnalysisEngine(capture_path=filepath, max_request_age_us=config.max_request_age_us)
    collected = []

    try:
        with PcapMessageSource(filepath, config) as source:
            for message in source:
                decoded = engine.process_message(decoder.decode(message))
                if format == "messages":
                    collected.append(decoded)
                elif format == "summary":
                    collected.append(f"{decoded.raw.frame_number}\t{decoded.info}")
                if limit > 0 and engine.context.stats["messages_total"] >= limit:
                    break
    except Exception as e:
        raise click.ClickException(str(e))

    if format == "report":
        payload = engine.finalize().to_json()
    elif format == "messages":
        # serialised after the loop so requests show their answer frame
        payload = "\n".join(decoded.to_json() for decoded in collected)
    else:
        payload = "\n".join(collected)
    _write(payload, output)


@cli.command("decode-hex")
@click.argument("hexdata")
@click.option("--dictionary", "dictionary", type=click.Path(dir_okay=False),
              help="JSON dictionary document (default: bundled base dictionary)")
@click.option("--no-subdissectors", is_flag=True, help="Do not run AVP sub-decoders")
@click.option("--output", "output", type=click.Path(dir_okay=False),
              help="Write JSON output to file")
def decode_hex(hexdata: str, dictionary: Optional[str], no_subdissectors: bool, output: Optional[str]):
    """
    Decode a single Diameter message given as hex.

    Example:
      diamscope decode-hex 0100001480000101000000000000000100000001
    """
    cleaned = "".join(hexdata.split()).replace(":", "")
    try:
        data = binascii.unhexlify(cleaned)
    except (binascii.Error, ValueError) as e:
        raise click.ClickException(f"Invalid hex input: {e}")

    config = _build_config(dictionary, (), no_subdissectors)
    decoder = _make_decoder(config)
    decoded = decoder.decode(RawMessage(frame_number=1, timestamp_us=0, data=data))
    _write(decoded.to_json(), output)


if __name__ == "__main__":
    cli()
