"""Network posture: Wi-Fi encryption, MAC privacy, DNS, ARP table."""
from __future__ import annotations

from collections import Counter

from bastion.checks.base import SecurityCheck
from bastion.models import Capabilities, Category, CheckStatus, Finding, Severity
from bastion.process import ProcessRunner
from bastion.sanitize import redact_ipv4

NETWORKSETUP = "/usr/sbin/networksetup"
IPCONFIG = "/usr/sbin/ipconfig"

_BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"


def extract_wifi_interface(hardware_ports: str) -> str | None:
    """Device name listed under the Wi-Fi hardware port.

    ``networksetup -listallhardwareports`` prints blocks such as::

        Hardware Port: Wi-Fi
        Device: en0
    """
    lines = hardware_ports.splitlines()
    for i, line in enumerate(lines):
        if "Wi-Fi" not in line and "AirPort" not in line:
            continue
        if i + 1 < len(lines) and ":" in lines[i + 1]:
            device = lines[i + 1].split(":", 1)[1].strip()
            if device:
                return device
    return None


def _summary_value(output: str, key: str, sep: str = ":") -> str:
    for line in output.splitlines():
        if key in line and sep in line:
            return line.split(sep, 1)[1].strip()
    return ""


def _wifi_interface(runner: ProcessRunner) -> str | None:
    result = runner.run(NETWORKSETUP, ["-listallhardwareports"], timeout=5.0)
    return extract_wifi_interface(result.stdout)


class WiFiSecurityCheck(SecurityCheck):
    id = "wifi_security"
    label = "WiFi Security"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        iface = _wifi_interface(runner)
        if iface is None:
            return [self.info("No WiFi interface detected")]

        summary = runner.run(IPCONFIG, ["getsummary", iface], timeout=5.0)
        security = _summary_value(summary.stdout, "Security")
        if not security:
            profile = runner.run(
                "/usr/sbin/system_profiler", ["SPAirPortDataType"], timeout=10.0,
            )
            security = _summary_value(profile.stdout, "Security")

        if not security:
            return [self.inconclusive(Severity.MEDIUM, "Could not determine WiFi security type")]

        upper = security.upper()
        if "WPA3" in upper or "SAE" in upper or "WPA2" in upper:
            return [self.passed(security)]
        if "WEP" in upper:
            return [self.finding(
                CheckStatus.FAIL, Severity.CRITICAL,
                f"{security} (WEP is broken, do not use)",
                "Connect to a WPA2/WPA3 network",
            )]
        if "NONE" in upper or "OPEN" in upper:
            return [self.finding(
                CheckStatus.FAIL, Severity.HIGH,
                "OPEN network (no encryption, traffic visible to all)",
                "Use a VPN or connect to an encrypted network",
            )]
        return [self.info(security)]


class PrivateWiFiAddressCheck(SecurityCheck):
    id = "private_wifi_address"
    label = "Private WiFi Address"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        iface = _wifi_interface(runner)
        if iface is None:
            return []

        summary = runner.run(IPCONFIG, ["getsummary", iface], timeout=5.0)
        for line in summary.stdout.splitlines():
            if "Private MAC" not in line or ":" not in line:
                continue
            value = line.split(":", 1)[1].strip().lower()
            if value in ("yes", "1", "true"):
                return [self.passed("enabled (MAC randomization)")]
            return [self.finding(
                CheckStatus.WARN, Severity.LOW,
                "disabled (real MAC exposed)",
                "Enable in WiFi network settings > Private Wi-Fi Address",
            )]

        return [self.inconclusive(Severity.LOW, "Could not determine private address status")]


class DNSCheck(SecurityCheck):
    id = "dns"
    label = "DNS Servers"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run(NETWORKSETUP, ["-getdnsservers", "Wi-Fi"], timeout=5.0)
        output = result.stdout.strip()
        if not output or "any DNS" in output:
            return [self.info(
                "ISP default (your ISP sees every domain you visit)", Severity.LOW,
                "Set custom DNS: networksetup -setdnsservers Wi-Fi 9.9.9.9 149.112.112.112",
            )]
        servers = ", ".join(s.strip() for s in output.splitlines() if s.strip())
        return [self.info(redact_ipv4(servers))]


class ARPSpoofingCheck(SecurityCheck):
    id = "arp_spoofing"
    label = "ARP Table"
    category = Category.FIREWALL_NETWORK

    def run(self, runner: ProcessRunner, capabilities: Capabilities) -> list[Finding]:
        result = runner.run("/usr/sbin/arp", ["-a"], timeout=5.0)
        if not result.succeeded:
            return [self.inconclusive(Severity.MEDIUM, "Could not read ARP table")]

        # "host (ip) at mac on iface ..."
        macs: Counter[str] = Counter()
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) < 4 or parts[2] != "at":
                continue
            mac = parts[3].lower()
            if ":" in mac and mac != _BROADCAST_MAC:
                macs[mac] += 1

        duplicates = [mac for mac, n in macs.items() if n > 1]
        if not duplicates:
            return [self.passed("No duplicate MAC addresses (no obvious ARP spoofing)")]
        return [self.finding(
            CheckStatus.FAIL, Severity.HIGH,
            "DUPLICATE MAC addresses detected (possible ARP spoofing/MitM): "
            f"{len(duplicates)} duplicate(s)",
            "Investigate network for potential man-in-the-middle attack",
        )]
