"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

PENDING_ONLY = "status = 'pending'"


def _fk(column: str, target: str, ondelete: str, table: str) -> sa.ForeignKeyConstraint:
    referred_table = target.split(".", 1)[0]
    return sa.ForeignKeyConstraint(
        [column],
        [target],
        name=op.f(f"fk_{table}_{column}_{referred_table}"),
        ondelete=ondelete,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("phone_number", sa.String(), nullable=False),
        sa.Column("profile_picture", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("business_name", sa.String(), nullable=True),
        sa.Column("business_type", sa.String(), nullable=True),
        sa.Column("address", sa.String(), nullable=True),
        sa.Column("city", sa.String(), nullable=True),
        sa.Column("state", sa.String(), nullable=True),
        sa.Column("zip_code", sa.String(), nullable=True),
        sa.Column("license_number", sa.String(), nullable=True),
        sa.Column("license_expiry", sa.Date(), nullable=True),
        sa.Column("tax_id", sa.String(), nullable=True),
        sa.Column("verification_status", sa.String(), nullable=False),
        sa.Column("average_rating", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_users")),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(op.f("ix_users_business_name"), "users", ["business_name"], unique=False)

    op.create_table(
        "user_ratings",
        sa.Column("rating_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("rater_id", sa.Uuid(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("review", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name=op.f("ck_user_ratings_rating_range")),
        _fk("user_id", "users.user_id", "CASCADE", "user_ratings"),
        _fk("rater_id", "users.user_id", "CASCADE", "user_ratings"),
        sa.PrimaryKeyConstraint("rating_id", name=op.f("pk_user_ratings")),
        sa.UniqueConstraint("user_id", "rater_id", name=op.f("uq_user_ratings_rater")),
    )
    op.create_index(op.f("ix_user_ratings_user_id"), "user_ratings", ["user_id"], unique=False)

    op.create_table(
        "pets",
        sa.Column("pet_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("breed", sa.String(), nullable=False),
        sa.Column("age", sa.String(), nullable=False),
        sa.Column("gender", sa.String(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("health_info", sa.Text(), nullable=False),
        sa.Column("requirements", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("seller_id", sa.Uuid(), nullable=False),
        sa.Column("adopter_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        _fk("seller_id", "users.user_id", "CASCADE", "pets"),
        _fk("adopter_id", "users.user_id", "SET NULL", "pets"),
        sa.PrimaryKeyConstraint("pet_id", name=op.f("pk_pets")),
    )
    op.create_index(op.f("ix_pets_type"), "pets", ["type"], unique=False)
    op.create_index(op.f("ix_pets_status"), "pets", ["status"], unique=False)
    op.create_index(op.f("ix_pets_seller_id"), "pets", ["seller_id"], unique=False)

    op.create_table(
        "adoption_requests",
        sa.Column("request_id", sa.Uuid(), nullable=False),
        sa.Column("pet_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("seller_id", sa.Uuid(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("pet_id", "pets.pet_id", "CASCADE", "adoption_requests"),
        _fk("user_id", "users.user_id", "CASCADE", "adoption_requests"),
        _fk("seller_id", "users.user_id", "CASCADE", "adoption_requests"),
        sa.PrimaryKeyConstraint("request_id", name=op.f("pk_adoption_requests")),
    )
    op.create_index(op.f("ix_adoption_requests_pet_id"), "adoption_requests", ["pet_id"], unique=False)
    op.create_index(op.f("ix_adoption_requests_user_id"), "adoption_requests", ["user_id"], unique=False)
    op.create_index(op.f("ix_adoption_requests_seller_id"), "adoption_requests", ["seller_id"], unique=False)
    op.create_index(
        "uq_adoption_requests_pending",
        "adoption_requests",
        ["pet_id", "user_id"],
        unique=True,
        postgresql_where=sa.text(PENDING_ONLY),
        sqlite_where=sa.text(PENDING_ONLY),
    )

    op.create_table(
        "chats",
        sa.Column("chat_id", sa.Uuid(), nullable=False),
        sa.Column("adoption_request_id", sa.Uuid(), nullable=False),
        sa.Column("buyer_id", sa.Uuid(), nullable=False),
        sa.Column("seller_id", sa.Uuid(), nullable=False),
        sa.Column("buyer_accepted", sa.Boolean(), nullable=False),
        sa.Column("seller_accepted", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("adoption_request_id", "adoption_requests.request_id", "RESTRICT", "chats"),
        _fk("buyer_id", "users.user_id", "CASCADE", "chats"),
        _fk("seller_id", "users.user_id", "CASCADE", "chats"),
        sa.PrimaryKeyConstraint("chat_id", name=op.f("pk_chats")),
        sa.UniqueConstraint("adoption_request_id", name=op.f("uq_chats_adoption_request_id")),
    )

    op.create_table(
        "chat_messages",
        sa.Column("message_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("chat_id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        _fk("chat_id", "chats.chat_id", "CASCADE", "chat_messages"),
        _fk("sender_id", "users.user_id", "CASCADE", "chat_messages"),
        sa.PrimaryKeyConstraint("message_id", name=op.f("pk_chat_messages")),
    )
    op.create_index(op.f("ix_chat_messages_chat_id"), "chat_messages", ["chat_id"], unique=False)

    op.create_table(
        "blogs",
        sa.Column("blog_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("subtitle", sa.String(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("featured_image", sa.String(), nullable=True),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("read_time", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        _fk("author_id", "users.user_id", "CASCADE", "blogs"),
        sa.PrimaryKeyConstraint("blog_id", name=op.f("pk_blogs")),
    )
    op.create_index(op.f("ix_blogs_author_id"), "blogs", ["author_id"], unique=False)

    op.create_table(
        "blog_likes",
        sa.Column("blog_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("blog_id", "blogs.blog_id", "CASCADE", "blog_likes"),
        _fk("user_id", "users.user_id", "CASCADE", "blog_likes"),
        sa.PrimaryKeyConstraint("blog_id", "user_id", name=op.f("pk_blog_likes")),
    )

    op.create_table(
        "blog_comments",
        sa.Column("comment_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("blog_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("blog_id", "blogs.blog_id", "CASCADE", "blog_comments"),
        _fk("author_id", "users.user_id", "CASCADE", "blog_comments"),
        sa.PrimaryKeyConstraint("comment_id", name=op.f("pk_blog_comments")),
    )
    op.create_index(op.f("ix_blog_comments_blog_id"), "blog_comments", ["blog_id"], unique=False)

    op.create_table(
        "communities",
        sa.Column("community_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image", sa.String(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("created_by", "users.user_id", "CASCADE", "communities"),
        sa.PrimaryKeyConstraint("community_id", name=op.f("pk_communities")),
    )

    op.create_table(
        "community_members",
        sa.Column("community_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        _fk("community_id", "communities.community_id", "CASCADE", "community_members"),
        _fk("user_id", "users.user_id", "CASCADE", "community_members"),
        sa.PrimaryKeyConstraint("community_id", "user_id", name=op.f("pk_community_members")),
    )

    op.create_table(
        "community_messages",
        sa.Column("message_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("community_id", sa.Uuid(), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("community_id", "communities.community_id", "CASCADE", "community_messages"),
        _fk("sender_id", "users.user_id", "CASCADE", "community_messages"),
        sa.PrimaryKeyConstraint("message_id", name=op.f("pk_community_messages")),
    )
    op.create_index(
        op.f("ix_community_messages_community_id"), "community_messages", ["community_id"], unique=False
    )

    op.create_table(
        "posts",
        sa.Column("post_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        _fk("author_id", "users.user_id", "CASCADE", "posts"),
        sa.PrimaryKeyConstraint("post_id", name=op.f("pk_posts")),
    )
    op.create_index(op.f("ix_posts_author_id"), "posts", ["author_id"], unique=False)

    op.create_table(
        "post_likes",
        sa.Column("post_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("post_id", "posts.post_id", "CASCADE", "post_likes"),
        _fk("user_id", "users.user_id", "CASCADE", "post_likes"),
        sa.PrimaryKeyConstraint("post_id", "user_id", name=op.f("pk_post_likes")),
    )

    op.create_table(
        "post_comments",
        sa.Column("comment_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.Uuid(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        _fk("post_id", "posts.post_id", "CASCADE", "post_comments"),
        _fk("author_id", "users.user_id", "CASCADE", "post_comments"),
        sa.PrimaryKeyConstraint("comment_id", name=op.f("pk_post_comments")),
    )
    op.create_index(op.f("ix_post_comments_post_id"), "post_comments", ["post_id"], unique=False)


def downgrade() -> None:
    for table in (
        "post_comments",
        "post_likes",
        "posts",
        "community_messages",
        "community_members",
        "communities",
        "blog_comments",
        "blog_likes",
        "blogs",
        "chat_messages",
        "chats",
        "adoption_requests",
        "pets",
        "user_ratings",
        "users",
    ):
        op.drop_table(table)
