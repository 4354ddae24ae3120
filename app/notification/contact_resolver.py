"""Contact resolver: pick a delivery channel for a candidate.

The first contact address whose kind maps to a supported channel and
whose value normalizes to a valid phone number wins.  WhatsApp numbers
and plain phone numbers both deliver over WhatsApp; email is not a
supported channel.  ``preferred_channel_hint`` is accepted but does not
change the choice while only one channel type exists.
"""
from __future__ import annotations

import logging

from app.normalization.phone_normalizer import normalize_phone
from app.notification.models import AddressKind, Channel, ChannelType, ExpiryCandidate

logger = logging.getLogger(__name__)

SUPPORTED_ADDRESS_KINDS: dict[AddressKind, ChannelType] = {
    AddressKind.WHATSAPP: ChannelType.WHATSAPP,
    AddressKind.PHONE: ChannelType.WHATSAPP,
}


def resolve_channel(candidate: ExpiryCandidate, *, default_region: str = "US") -> Channel | None:
    """Return the channel to reach *candidate*, or ``None`` when unreachable."""
    for address in candidate.contact_addresses:
        channel_type = SUPPORTED_ADDRESS_KINDS.get(address.kind)
        if channel_type is None:
            continue
        destination = normalize_phone(address.value, default_region=default_region)
        if destination is None:
            logger.debug(
                "Skipping unparseable %s address for membership %s",
                address.kind, candidate.membership_id,
            )
            continue
        return Channel(channel_type=channel_type, destination=destination)
    return None
