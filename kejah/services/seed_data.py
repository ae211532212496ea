"""Fixed dataset the in-memory backend starts from."""

import time
from typing import Optional

from kejah.models.listing import Listing
from kejah.models.user import User

_UNSPLASH = "https://images.unsplash.com"

SEED_USERS = [
    {
        "uid": "user_123",
        "email": "demo@agent.com",
        "display_name": "Demo Agent",
        "role": "agent",
        "photo_url": "https://picsum.photos/id/64/100/100",
        "is_verified": True,
        "phone_number": "5551234567",
    },
    {
        "uid": "agent_1",
        "email": "sarah.realtor@kejah.com",
        "display_name": "Sarah Jenkins",
        "role": "agent",
        "photo_url": f"{_UNSPLASH}/photo-1573496359142-b8d87734a5a2?auto=format&fit=crop&q=80&w=400",
        "is_verified": True,
        "phone_number": "+254 712 345 678",
    },
    {
        "uid": "agent_2",
        "email": "michael.ross@kejah.com",
        "display_name": "Michael Ross",
        "role": "agent",
        "photo_url": f"{_UNSPLASH}/photo-1560250097-0b93528c311a?auto=format&fit=crop&q=80&w=400",
        "is_verified": True,
        "phone_number": "+254 722 987 654",
    },
    {
        "uid": "agent_3",
        "email": "priya.patel@kejah.com",
        "display_name": "Priya Patel",
        "role": "agent",
        "photo_url": f"{_UNSPLASH}/photo-1580489944761-15a19d654956?auto=format&fit=crop&q=80&w=400",
        "is_verified": True,
        "phone_number": "+254 733 456 789",
    },
]

# created_at offsets (ms) relative to process start
SEED_LISTINGS = [
    {
        "id": "bs1", "creator_id": "user_123", "type": "RENT",
        "title": "Cozy Downtown Bedsitter",
        "description": "Efficient bedsitter unit perfect for a student or young professional. "
                       "Includes kitchenette and shared laundry.",
        "price": 6500, "bedrooms": 0, "bathrooms": 1, "sqft": 350,
        "amenities": ["WiFi", "Shared Laundry", "Furnished"],
        "image_urls": [f"{_UNSPLASH}/photo-1522708323590-d24dbb6b0267?w=800"],
        "location": {"lat": -1.2921, "lng": 36.8219, "address": "101 Moi Ave",
                     "city": "Nairobi", "state": "Nairobi", "zip": "00100"},
        "offset_ms": 0, "views": 120, "featured": True,
    },
    {
        "id": "1b4", "creator_id": "user_123", "type": "SALE",
        "title": "Luxury 1-Bed Highrise",
        "description": "Stunning views from the 10th floor. Floor-to-ceiling windows and premium finishes.",
        "price": 4200000, "bedrooms": 1, "bathrooms": 1, "sqft": 900,
        "amenities": ["Doorman", "Valet", "Spa"],
        "image_urls": [f"{_UNSPLASH}/photo-1515263487990-61b07816b324?w=800"],
        "location": {"lat": -1.2637, "lng": 36.8024, "address": "99 Westlands Rd",
                     "city": "Nairobi", "state": "Nairobi", "zip": "00800"},
        "offset_ms": -70000, "views": 300, "featured": True,
    },
    {
        "id": "2b1", "creator_id": "agent_1", "type": "SALE",
        "title": "Modern 2-Bed Townhouse",
        "description": "Two-story townhouse with a private patio and attached garage. Ideal for small families.",
        "price": 5500000, "bedrooms": 2, "bathrooms": 2, "sqft": 1200,
        "amenities": ["Garage", "Patio", "Stainless Steel"],
        "image_urls": [f"{_UNSPLASH}/photo-1560448204-e02f11c3d0e2?w=800"],
        "location": {"lat": -0.4169, "lng": 36.9510, "address": "22 King Ongo",
                     "city": "Nyeri", "state": "Nyeri", "zip": "10100"},
        "offset_ms": -80000, "views": 90, "featured": False,
    },
    {
        "id": "3r2", "creator_id": "agent_2", "type": "RENT",
        "title": "Family 3-Bed Apartment",
        "description": "Spacious apartment close to schools, with backup water and a children's play area.",
        "price": 85000, "bedrooms": 3, "bathrooms": 2, "sqft": 1500,
        "amenities": ["Borehole", "Play Area", "Parking"],
        "image_urls": [f"{_UNSPLASH}/photo-1502672260266-1c1ef2d93688?w=800"],
        "location": {"lat": -4.0435, "lng": 39.6682, "address": "7 Nyali Rd",
                     "city": "Mombasa", "state": "Mombasa", "zip": "80100"},
        "offset_ms": -90000, "views": 45, "featured": False,
    },
    {
        "id": "4v1", "creator_id": "agent_3", "type": "SALE",
        "title": "Karen 5-Bed Villa",
        "description": "Villa on half an acre with a pool, staff quarters and mature gardens.",
        "price": 65000000, "bedrooms": 5, "bathrooms": 5, "sqft": 6200,
        "amenities": ["Pool", "Garden", "Staff Quarters", "Garden"],
        "image_urls": [f"{_UNSPLASH}/photo-1613490493576-7fde63acd811?w=800"],
        "location": {"lat": -1.3192, "lng": 36.7073, "address": "14 Karen Rd",
                     "city": "Nairobi", "state": "Nairobi", "zip": "00502"},
        "offset_ms": -100000, "views": 510, "featured": False,
    },
]


def seed_users() -> list[User]:
    return [User(**data) for data in SEED_USERS]


def seed_listings(now_ms: Optional[int] = None) -> list[Listing]:
    """Materialise the seed listings with timestamps relative to ``now_ms``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    listings = []
    for data in SEED_LISTINGS:
        data = dict(data)
        offset = data.pop("offset_ms")
        listings.append(Listing(created_at=now_ms + offset, **data))
    return listings
