"""Response payload builders shared by the public, my-page and admin routers.

Each surface nests related rows differently; the builders only touch
relationships the calling query eager-loaded.
"""

from database.models import Address, Campaign, Company, Entry, Review, Shipment
from database.schemas import (
    AddressOut, CampaignOut, CompanyOut, EntryOut, ReviewOut, ShipmentOut, UserOut,
)
from domain.entries import entry_can_review
from domain.reporting import CampaignStats
from domain.reviews import rating_text
from domain.shipments import tracking_info


def _dump(schema, obj) -> dict:
    return schema.model_validate(obj).model_dump(mode="json")


def user_json(user) -> dict:
    return _dump(UserOut, user)


def company_json(company: Company) -> dict:
    return _dump(CompanyOut, company)


def campaign_json(campaign: Campaign, stats: CampaignStats, admin: bool = False) -> dict:
    data = _dump(CampaignOut, campaign)
    data["entry_count"] = stats.entry_count
    data["average_rating"] = stats.average_rating
    if admin:
        data["winner_count"] = stats.winner_count
        data["company"] = {"id": campaign.company.id, "name": campaign.company.name}
    else:
        data.pop("created_at", None)
        data.pop("updated_at", None)
        data["company"] = {"name": campaign.company.name}
    return data


def campaign_detail_json(campaign: Campaign, stats: CampaignStats, can_apply: bool) -> dict:
    data = campaign_json(campaign, stats)
    data["company"] = {"name": campaign.company.name, "url": campaign.company.url}
    data["can_apply"] = can_apply
    return data


def admin_campaign_detail_json(campaign: Campaign, stats: CampaignStats) -> dict:
    data = campaign_json(campaign, stats, admin=True)
    data["company"] = {
        "id": campaign.company.id,
        "name": campaign.company.name,
        "email": campaign.company.email,
        "url": campaign.company.url,
    }
    return data


def entry_json(entry: Entry) -> dict:
    data = _dump(EntryOut, entry)
    data.pop("updated_at", None)
    return data


def my_entry_json(entry: Entry) -> dict:
    data = entry_json(entry)
    data["can_review"] = entry_can_review(entry)
    data["campaign"] = {
        "id": entry.campaign.id,
        "title": entry.campaign.title,
        "image_url": entry.campaign.image_url,
    }
    return data


def admin_entry_json(entry: Entry) -> dict:
    data = _dump(EntryOut, entry)
    data["user"] = {"id": entry.user.id, "email": entry.user.email}
    data["campaign"] = {"id": entry.campaign.id, "title": entry.campaign.title}
    return data


def admin_entry_detail_json(entry: Entry) -> dict:
    data = admin_entry_json(entry)
    data["campaign"] = {
        "id": entry.campaign.id,
        "title": entry.campaign.title,
        "description": entry.campaign.description,
        "company": {"name": entry.campaign.company.name},
    }
    shipment = entry.shipment
    data["shipment"] = (
        {
            "id": shipment.id,
            "status": shipment.status,
            "shipped_at": shipment.shipped_at.isoformat() if shipment.shipped_at else None,
        }
        if shipment is not None
        else None
    )
    return data


def address_json(address: Address) -> dict:
    return _dump(AddressOut, address)


def shipment_json(shipment: Shipment) -> dict:
    data = _dump(ShipmentOut, shipment)
    data["tracking_info"] = tracking_info(shipment)
    data["user"] = {"id": shipment.entry.user.id, "email": shipment.entry.user.email}
    data["campaign"] = {"id": shipment.entry.campaign.id, "title": shipment.entry.campaign.title}
    address = shipment.address
    data["address"] = {
        "postal_code": address.postal_code,
        "prefecture": address.prefecture,
        "city": address.city,
        "address1": address.address1,
        "address2": address.address2,
        "phone": address.phone,
    }
    return data


def shipment_detail_json(shipment: Shipment) -> dict:
    data = shipment_json(shipment)
    entry = shipment.entry
    data["entry"] = {
        "id": entry.id,
        "status": entry.status,
        "created_at": entry.created_at.isoformat() if entry.created_at else None,
    }
    return data


def review_json(review: Review) -> dict:
    data = _dump(ReviewOut, review)
    data["rating_text"] = rating_text(review.rating)
    data["user"] = {"name": review.user.name}
    return data


def my_review_json(review: Review) -> dict:
    data = _dump(ReviewOut, review)
    data["rating_text"] = rating_text(review.rating)
    data["campaign"] = {
        "id": review.campaign.id,
        "title": review.campaign.title,
        "image_url": review.campaign.image_url,
    }
    return data


def admin_review_json(review: Review) -> dict:
    data = _dump(ReviewOut, review)
    data["rating_text"] = rating_text(review.rating)
    data["user"] = {"id": review.user.id, "email": review.user.email}
    data["campaign"] = {
        "id": review.campaign.id,
        "title": review.campaign.title,
        "company": {"name": review.campaign.company.name},
    }
    return data
