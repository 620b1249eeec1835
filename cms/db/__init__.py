from .base import Base
from .models.admin import Admin
from .models.banner import Banner
from .models.cache import CacheEntry  # Used when CACHE_TYPE=database
from .models.content import Content
from .models.member import Member, Position
from .models.ministry import Ministry
from .models.module import Module
from .models.partner import Partner, PartnerRequest
from .models.resource import Resource
from .models.tag import Tag
