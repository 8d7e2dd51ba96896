"""Check registries, one per engine. Order is execution and report order."""
from __future__ import annotations

from bastion.checks.base import SecurityCheck
from bastion.checks.connections import ActiveConnectionsCheck
from bastion.checks.file_hygiene import (
    EnvFilesCheck,
    GitCredentialsCheck,
    NetrcCheck,
    SSHDirectoryCheck,
    SSHKeyPermissionsCheck,
)
from bastion.checks.firewall import FirewallEnabledCheck, StealthModeCheck
from bastion.checks.network import (
    ARPSpoofingCheck,
    DNSCheck,
    PrivateWiFiAddressCheck,
    WiFiSecurityCheck,
)
from bastion.checks.permissions import TCCPermissionsCheck
from bastion.checks.persistence import (
    CronJobsCheck,
    KernelExtensionsCheck,
    LoginItemsCheck,
    SystemLaunchAgentsCheck,
    SystemLaunchDaemonsCheck,
    UserLaunchAgentsCheck,
)
from bastion.checks.ports import ListenerSigningCheck, ListeningPortsCheck
from bastion.checks.privacy import (
    AnalyticsCheck,
    FullAccessCheck,
    PersonalizedAdsCheck,
    SiriCheck,
    SpotlightSuggestionsCheck,
)
from bastion.checks.sharing import (
    AirDropCheck,
    ARDCheck,
    BluetoothCheck,
    RemoteAppleEventsCheck,
    ScreenSharingCheck,
    SMBCheck,
    SSHCheck,
)
from bastion.checks.system_protection import (
    AMFICheck,
    FileVaultCheck,
    GatekeeperCheck,
    LockdownModeCheck,
    SecureBootCheck,
    SIPCheck,
    XProtectVersionCheck,
)


def audit_checks() -> list[SecurityCheck]:
    return [
        # System protection
        SIPCheck(),
        FileVaultCheck(),
        GatekeeperCheck(),
        AMFICheck(),
        SecureBootCheck(),
        LockdownModeCheck(),
        XProtectVersionCheck(),
        # Firewall
        FirewallEnabledCheck(),
        StealthModeCheck(),
        # Sharing
        SSHCheck(),
        ScreenSharingCheck(),
        SMBCheck(),
        RemoteAppleEventsCheck(),
        ARDCheck(),
        BluetoothCheck(),
        AirDropCheck(),
        # Privacy
        AnalyticsCheck(),
        SiriCheck(),
        SpotlightSuggestionsCheck(),
        PersonalizedAdsCheck(),
        # Network
        WiFiSecurityCheck(),
        PrivateWiFiAddressCheck(),
        DNSCheck(),
        ARPSpoofingCheck(),
        # File hygiene
        SSHDirectoryCheck(),
        SSHKeyPermissionsCheck(),
        EnvFilesCheck(),
        GitCredentialsCheck(),
        NetrcCheck(),
        FullAccessCheck(),
    ]


def persistence_checks() -> list[SecurityCheck]:
    return [
        UserLaunchAgentsCheck(),
        SystemLaunchAgentsCheck(),
        SystemLaunchDaemonsCheck(),
        LoginItemsCheck(),
        CronJobsCheck(),
        KernelExtensionsCheck(),
    ]


def port_checks() -> list[SecurityCheck]:
    return [ListeningPortsCheck(), ListenerSigningCheck()]


def connection_checks() -> list[SecurityCheck]:
    return [ActiveConnectionsCheck()]


def permission_checks() -> list[SecurityCheck]:
    return [TCCPermissionsCheck()]
