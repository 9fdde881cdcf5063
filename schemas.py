"""
Content Schemas

Pydantic models for the documents the hotel Content API exchanges.
Field names follow the API's camelCase wire format. Keys beyond the
modelled fields are kept and sent on with the document.
"""

from typing import List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

RoomType = Literal['Standard', 'Deluxe', 'Suite', 'Executive Suite', 'Presidential Suite']
BedType = Literal['Single', 'Double', 'Queen', 'King', 'Twin', 'Sofa Bed']
BlogCategory = Literal[
    'News', 'Events', 'Travel Tips', 'Local Attractions',
    'Hotel Updates', 'Food & Dining', 'Spa & Wellness',
    'Special Offers', 'Guest Stories', 'Behind the Scenes',
]
BlogStatus = Literal['draft', 'published', 'archived']

ROOM_TYPES = list(get_args(RoomType))
BED_TYPES = list(get_args(BedType))
BLOG_CATEGORIES = list(get_args(BlogCategory))
BLOG_STATUSES = list(get_args(BlogStatus))

AMENITIES_OPTIONS = [
    'WiFi', 'TV', 'AC', 'Minibar', 'Safe', 'Balcony', 'Ocean View',
    'City View', 'Mountain View', 'Garden View', 'Jacuzzi', 'Fireplace',
    'Kitchen', 'Kitchenette', 'Workspace', 'Butler Service', 'Spa Access',
    'Private Pool', 'Terrace', 'Walk-in Closet', 'Sound System',
]

BOOKING_STATUS_COLORS = {
    'Confirmed': 'success',
    'Pending': 'warning',
    'Cancelled': 'error',
    'Checked In': 'info',
    'Checked Out': 'default',
}
BLOG_STATUS_COLORS = {'draft': 'default', 'published': 'success', 'archived': 'warning'}


class Document(BaseModel):
    model_config = ConfigDict(extra='allow', populate_by_name=True)


# ─── Page content ────────────────────────────────────────────────
class Hero(Document):
    title: str = ''
    subtitle: str = ''
    description: str = ''
    backgroundImage: str = ''
    ctaText: Optional[str] = None
    ctaLink: Optional[str] = None


class SectionItem(Document):
    title: str = ''
    description: str = ''


class Section(Document):
    sectionId: str = Field(..., min_length=1, description="Stable key used for lookups")
    title: str = ''
    subtitle: Optional[str] = None
    content: str = Field('', description="Rich text / HTML")
    image: Optional[str] = None
    items: List[SectionItem] = []
    isActive: bool = True


class Seo(Document):
    title: str = ''
    description: str = ''
    keywords: List[str] = []
    ogImage: str = ''

    @field_validator('keywords', mode='before')
    @classmethod
    def split_keywords(cls, v):
        return split_list(v)


class PageContent(Document):
    """Collection "content", one document per page (home, about)."""
    hero: Hero = Hero()
    sections: List[Section] = []
    seo: Seo = Seo()

    @field_validator('sections')
    @classmethod
    def unique_section_ids(cls, sections):
        seen = set()
        for section in sections:
            if section.sectionId in seen:
                raise ValueError(f'duplicate sectionId "{section.sectionId}"')
            seen.add(section.sectionId)
        return sections


# ─── Rooms & categories ──────────────────────────────────────────
class Image(Document):
    url: str
    alt: str = ''


class RoomImage(Image):
    isPrimary: bool = False


class PriceRange(Document):
    min: float = 0
    max: float = 0


class RoomCategory(Document):
    id: Optional[str] = Field(None, alias='_id')
    name: str
    slug: str
    description: str = ''
    shortDescription: str = ''
    primaryImage: Optional[str] = None
    imageCount: int = 0
    roomCount: int = 0
    features: List[str] = []
    priceRange: Optional[PriceRange] = None
    images: List[Image] = []


class GalleryCategory(Document):
    name: str
    slug: str
    description: str = ''
    primaryImage: Optional[str] = None
    imageCount: int = 0
    images: List[Image] = []


class Room(Document):
    """Admin-managed room unit (collection "room")."""
    name: str = Field(..., min_length=1)
    type: RoomType = 'Deluxe'
    roomNumber: str = Field(..., min_length=1)
    floor: int = 1
    size: int = Field(0, ge=0, description="Square metres")
    maxOccupancy: int = Field(2, ge=1)
    bedType: BedType = 'King'
    bedCount: int = Field(1, ge=1)
    basePrice: float = Field(0, ge=0, description="Per night, USD")
    description: str = Field(..., min_length=1)
    shortDescription: str = Field(..., min_length=1)
    amenities: List[str] = []
    images: List[RoomImage] = []
    status: str = 'Available'
    isActive: bool = True
    smokingAllowed: bool = False
    petsAllowed: bool = False

    @field_validator('amenities')
    @classmethod
    def known_amenities(cls, amenities):
        unknown = [a for a in amenities if a not in AMENITIES_OPTIONS]
        if unknown:
            raise ValueError(f'unknown amenities: {", ".join(unknown)}')
        return list(dict.fromkeys(amenities))

    @field_validator('images', mode='before')
    @classmethod
    def drop_blank_images(cls, images):
        return [img for img in images or [] if (img.get('url') if isinstance(img, dict) else img.url)]

    @model_validator(mode='after')
    def single_primary_image(self):
        normalize_primary(self.images)
        return self


def normalize_primary(images):
    """Leave exactly one primary image: the first flagged one, else the first."""
    if not images:
        return images
    primary = next((i for i, img in enumerate(images) if img.isPrimary), 0)
    for i, img in enumerate(images):
        img.isPrimary = i == primary
    return images


# ─── Blog, bookings, media ───────────────────────────────────────
class BlogPost(Document):
    title: str = Field(..., min_length=1)
    excerpt: str = ''
    content: str = Field(..., min_length=1)
    category: BlogCategory = 'News'
    status: BlogStatus = 'draft'
    tags: List[str] = []
    createdAt: Optional[str] = None

    @field_validator('tags', mode='before')
    @classmethod
    def split_tags(cls, v):
        return split_list(v)


class Guest(Document):
    name: Optional[str] = None


class BookedRoom(Document):
    name: Optional[str] = None


class Booking(Document):
    """Read-only view of a booking."""
    bookingNumber: str = ''
    guest: Optional[Guest] = None
    checkInDate: Optional[str] = None
    checkOutDate: Optional[str] = None
    room: Optional[BookedRoom] = None
    totalAmount: float = 0
    status: str = 'Pending'

    @property
    def status_color(self):
        return BOOKING_STATUS_COLORS.get(self.status, 'default')


class MediaFile(Document):
    filename: str
    url: str
    size: int = 0
    uploadedAt: Optional[str] = None


# ─── Settings ────────────────────────────────────────────────────
class Address(Document):
    street: str = ''
    city: str = ''
    country: str = ''


class SocialMedia(Document):
    facebook: str = ''
    instagram: str = ''
    twitter: str = ''


class Theme(Document):
    primaryColor: str = ''
    secondaryColor: str = ''
    accentColor: str = ''


class SiteSeo(Document):
    metaTitle: str = ''
    metaDescription: str = ''
    ogImage: str = ''


class BookingSettings(Document):
    minNights: int = Field(1, ge=1)
    maxNights: int = Field(30, ge=1)
    checkInTime: str = '15:00'
    checkOutTime: str = '11:00'
    cancellationPolicy: str = ''

    @model_validator(mode='after')
    def nights_in_order(self):
        if self.maxNights < self.minNights:
            raise ValueError('maxNights must not be less than minNights')
        return self


class Settings(Document):
    """Singleton site settings document."""
    siteName: str = Field(..., min_length=1)
    siteDescription: str = ''
    siteKeywords: str = ''
    contactEmail: str = ''
    contactPhone: str = ''
    whatsapp: str = ''
    address: Address = Address()
    socialMedia: SocialMedia = SocialMedia()
    theme: Theme = Theme()
    seo: SiteSeo = SiteSeo()
    bookingSettings: BookingSettings = BookingSettings()


# ─── Auth & misc ─────────────────────────────────────────────────
class AdminProfile(Document):
    username: str
    email: Optional[str] = None
    firstName: Optional[str] = None
    fullName: Optional[str] = None
    avatar: Optional[str] = None


class AdminSession(Document):
    token: str
    admin: AdminProfile


class ContactMessage(Document):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, pattern=r'^[^@\s]+@[^@\s]+$')
    phone: str = ''
    subject: str = ''
    message: str = Field(..., min_length=1)


# ─── Helpers ─────────────────────────────────────────────────────
def split_list(value):
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(',') if part.strip()]
    return value


def describe_errors(exc: ValidationError) -> List[str]:
    """Turn a ValidationError into short messages for flashing."""
    messages = []
    for err in exc.errors():
        field = '.'.join(str(p) for p in err['loc']) or 'form'
        if err['type'] in ('missing', 'string_too_short'):
            messages.append(f'{field} is required')
        else:
            messages.append(f"{field}: {err['msg']}")
    return messages
