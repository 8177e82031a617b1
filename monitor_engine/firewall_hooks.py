# monitor_engine/firewall_hooks.py

import logging

from .models import MALICIOUS


def should_block(settings, threat_level):
    """Firewall mode auto-blocks MALICIOUS connections; everything else is admitted."""
    return bool(settings.firewall_mode) and threat_level == MALICIOUS


def record_firewall_action(connection, logger=None):
    """
    Log a firewall decision for a generated connection. Blocking is simulated:
    the store keeps blocked connections out of the active window, nothing is
    pushed to iptables, Windows Firewall or PF.
    """
    logger = logger or logging.getLogger("genzex.firewall")
    decision = "block" if connection.blocked else "allow"
    action_log = (
        f"[FIREWALL ACTION] {decision.upper()} - {connection.app_name} "
        f"({connection.ip_address}:{connection.port}/{connection.protocol}, {connection.threat_level})"
    )
    if connection.blocked:
        logger.warning(action_log)
    else:
        logger.debug(action_log)
    return decision
