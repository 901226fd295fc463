from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from marketplace.buisness.errors import MissingDeliveryAddress


@dataclass(frozen=True)
class DeliveryInfo:
    address: Optional[str]
    place_name: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["DeliveryInfo"]:
        if not data or not isinstance(data, Mapping):
            return None
        return cls(
            address=data.get('address'),
            place_name=data.get('place_name'),
            contact_name=data.get('contact_name'),
            contact_phone=data.get('contact_phone'),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.address and self.contact_name and self.contact_phone)

    def apply_to(self, order) -> None:
        order.delivery_address = self.address
        order.delivery_place_name = self.place_name
        order.delivery_contact_name = self.contact_name
        order.delivery_contact_phone = self.contact_phone


def resolve_delivery(override: Optional[Mapping[str, Any]], buyer, required: bool = True) -> Optional[DeliveryInfo]:
    """
    Pick the delivery destination for a new order.

    An override is used only when it carries an address, a contact name and a
    contact phone; otherwise the buyer's factory location is used.

    Raises:
        MissingDeliveryAddress: If ``required`` and neither source yields an address
    """
    candidate = DeliveryInfo.from_mapping(override)
    if candidate is None or not candidate.is_complete:
        candidate = DeliveryInfo.from_mapping(buyer.factory_location if buyer is not None else None)

    if candidate is None or not candidate.address:
        if required:
            raise MissingDeliveryAddress(
                "Delivery address required: set a factory location in your profile or provide one at checkout"
            )
        return None
    return candidate
