"""Listening sockets and the signing status of the processes behind them."""
from __future__ import annotations

from dataclasses import dataclass

from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner
from bastion.readers.signing import validate_pid
from bastion.sanitize import sanitize_output

LSOF = "/usr/bin/lsof"

REVIEW = "REVIEW"

WELL_KNOWN_PORTS = {
    53: "DNS",
    80: "HTTP",
    88: "Kerberos",
    123: "NTP",
    137: "NetBIOS name",
    138: "NetBIOS datagram",
    443: "HTTPS",
    500: "IKE/VPN",
    631: "CUPS/printing",
    1900: "SSDP/UPnP",
    3722: "DeviceLink2/iOS sync",
    5000: "AirPlay/UPnP",
    5353: "mDNS/Bonjour",
    7000: "AirPlay streaming",
}

EPHEMERAL_RANGE = range(49152, 65536)


def port_note(port: str) -> str:
    try:
        number = int(port)
    except ValueError:
        return "unbound"
    if number in WELL_KNOWN_PORTS:
        return WELL_KNOWN_PORTS[number]
    if number in EPHEMERAL_RANGE:
        return "ephemeral"
    return REVIEW


@dataclass(frozen=True)
class Listener:
    protocol: str
    port: str
    command: str
    pid: str

    @property
    def id(self) -> str:
        return f"port_{self.protocol.lower()}_{self.port}"

    @property
    def label(self) -> str:
        return f"{self.protocol} Port {self.port}"

    @property
    def reviewable(self) -> bool:
        return port_note(self.port) == REVIEW


def parse_lsof(output: str, protocol: str) -> list[Listener]:
    """Unique (protocol, port, command) listeners from ``lsof`` table output."""
    listeners: list[Listener] = []
    seen: set[tuple[str, str, str]] = set()
    for line in output.splitlines():
        if line.startswith("COMMAND"):
            continue
        # COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
        parts = line.split()
        if len(parts) < 9:
            continue
        command, pid, address = parts[0], parts[1], parts[8]
        port = address.rsplit(":", 1)[-1]
        key = (protocol, port, command)
        if key in seen:
            continue
        seen.add(key)
        listeners.append(Listener(protocol, port, command, pid))
    return listeners


def list_listeners(runner: ProcessRunner) -> tuple[list[Listener], str | None]:
    """TCP then UDP listeners; the error is set when the TCP query failed.

    A failing UDP query only drops the UDP rows.
    """
    listeners: list[Listener] = []
    error = None

    tcp = runner.run(LSOF, ["-iTCP", "-sTCP:LISTEN", "-P", "-n"], timeout=10.0)
    if tcp.succeeded:
        listeners.extend(parse_lsof(tcp.stdout, "TCP"))
    else:
        error = sanitize_output(tcp.stderr, max_length=200) or "no output"

    udp = runner.run(LSOF, ["-iUDP", "-P", "-n"], timeout=10.0)
    if udp.succeeded:
        listeners.extend(parse_lsof(udp.stdout, "UDP"))
    return listeners, error


class ListeningPortsCheck(SecurityCheck):
    id = "listening_ports"
    label = "TCP Port Scan"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        listeners, error = list_listeners(runner)
        findings: list[Finding] = []
        if error is not None:
            findings.append(self.inconclusive(Severity.MEDIUM, f"lsof failed: {error}"))

        for listener in listeners:
            note = port_note(listener.port)
            status, severity = (
                (CheckStatus.WARN, Severity.LOW) if listener.reviewable
                else (CheckStatus.INFO, Severity.INFO)
            )
            findings.append(self.finding(
                status, severity,
                f"{listener.command} (PID {listener.pid}) - {note}",
                id=listener.id, check=listener.label,
            ))
        return findings


class ListenerSigningCheck(SecurityCheck):
    id = "listener_signing"
    label = "Listener Code Signing"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        listeners, _ = list_listeners(runner)
        findings: list[Finding] = []
        for listener in listeners:
            if not listener.reviewable:
                continue
            if validate_pid(runner, listener.pid).is_signed:
                continue
            findings.append(self.finding(
                CheckStatus.WARN, Severity.MEDIUM,
                "Binary is unsigned or has invalid signature",
                "Investigate the process listening on this port",
                id=f"{listener.id}_unsigned", check=f"{listener.label} - Code Signing",
            ))
        return findings
