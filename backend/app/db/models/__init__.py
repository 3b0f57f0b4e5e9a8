# backend/app/db/models/__init__.py

from app.db.models.user import User
from app.db.models.user_rating import UserRating
from app.db.models.pet import Pet
from app.db.models.adoption_request import AdoptionRequest
from app.db.models.chat import Chat, ChatMessage

from app.db.models.blog import Blog, BlogComment, BlogLike
from app.db.models.community import Community, CommunityMember, CommunityMessage
from app.db.models.post import Post, PostComment, PostLike
