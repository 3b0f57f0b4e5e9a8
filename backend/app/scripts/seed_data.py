"""Module: seed_data."""

import csv
import random
import string
from pathlib import Path

from faker import Faker
from sqlalchemy import delete

from app.core.security import hash_password
from app.db.init_db import init_db
from app.db.session import SessionLocal

from app.db.models.user import ROLE_BUSINESS, ROLE_REGULAR, User
from app.db.models.user_rating import UserRating
from app.db.models.pet import STATUS_AVAILABLE, Pet
from app.db.models.adoption_request import REQUEST_PENDING, AdoptionRequest
from app.db.models.chat import Chat, ChatMessage
from app.db.models.blog import Blog, BlogComment, BlogLike
from app.db.models.community import Community, CommunityMember, CommunityMessage

fake = Faker()

PET_TYPES = {
    "dog": ["Labrador", "Kelpie", "Beagle", "Staffordshire Terrier", "Border Collie"],
    "cat": ["Domestic Shorthair", "Ragdoll", "Siamese", "Maine Coon"],
    "rabbit": ["Holland Lop", "Netherland Dwarf"],
}


# Shared helpers used by multiple seed builders.
def generate_password(length: int = 12) -> str:
    chars = string.ascii_letters + string.digits
    return "".join(random.choice(chars) for _ in range(length))


def generate_mobile() -> str:
    return "04" + "".join(random.choice(string.digits) for _ in range(8))


def export_credentials(rows: list[tuple[str, str, str]]) -> Path:
    path = Path("seed_credentials.csv")
    with path.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["email", "password", "user_type"])
        writer.writerows(rows)
    return path


def reset_db(session) -> None:
    # Children before parents.
    for model in (
        ChatMessage,
        Chat,
        AdoptionRequest,
        Pet,
        BlogLike,
        BlogComment,
        Blog,
        CommunityMessage,
        CommunityMember,
        Community,
        UserRating,
        User,
    ):
        session.execute(delete(model))
    session.commit()


def seed_users(session, n_regular: int, n_business: int) -> tuple[list[User], list[User], list[tuple[str, str, str]]]:
    credentials = []
    regular, business = [], []

    for _ in range(n_regular):
        first, last = fake.first_name(), fake.last_name()
        password = generate_password()
        user = User(
            email=f"{first}.{last}.{fake.unique.random_int(1, 99999)}@example.com".lower(),
            password=hash_password(password),
            role=ROLE_REGULAR,
            name=f"{first} {last}",
            first_name=first,
            last_name=last,
            phone_number=generate_mobile(),
        )
        regular.append(user)
        credentials.append((user.email, password, ROLE_REGULAR))

    for _ in range(n_business):
        company = fake.company()
        password = generate_password()
        user = User(
            email=f"contact{fake.unique.random_int(1, 99999)}@{fake.domain_name()}".lower(),
            password=hash_password(password),
            role=ROLE_BUSINESS,
            name=company,
            business_name=company,
            business_type=random.choice(["shelter", "shop"]),
            address=fake.street_address(),
            city=fake.city(),
            state=fake.state_abbr(),
            zip_code=fake.postcode(),
            license_number=f"LIC-{random.randint(100000, 999999)}",
            phone_number=generate_mobile(),
        )
        business.append(user)
        credentials.append((user.email, password, ROLE_BUSINESS))

    session.add_all(regular + business)
    session.commit()
    return regular, business, credentials


def seed_pets(session, sellers: list[User], n: int) -> list[Pet]:
    pets = []
    for _ in range(n):
        pet_type = random.choice(list(PET_TYPES))
        pets.append(
            Pet(
                name=fake.first_name(),
                type=pet_type,
                breed=random.choice(PET_TYPES[pet_type]),
                age=f"{random.randint(1, 10)} years",
                gender=random.choice(["male", "female"]),
                price=round(random.uniform(0, 900), 2),
                description=fake.paragraph(nb_sentences=3),
                health_info=random.choice(["Vaccinated and desexed", "Vaccinated", "Microchipped"]),
                requirements=random.choice(["Fenced yard", "Indoor only", "No small children"]),
                images=[],
                status=STATUS_AVAILABLE,
                seller_id=random.choice(sellers).user_id,
            )
        )
    session.add_all(pets)
    session.commit()
    return pets


def seed_negotiations(session, buyers: list[User], pets: list[Pet], n: int) -> int:
    count = 0
    for pet in random.sample(pets, min(n, len(pets))):
        buyer = random.choice(buyers)
        req = AdoptionRequest(pet_id=pet.pet_id, user_id=buyer.user_id, seller_id=pet.seller_id, status=REQUEST_PENDING)
        session.add(req)
        session.flush()

        chat = Chat(adoption_request_id=req.request_id, buyer_id=buyer.user_id, seller_id=pet.seller_id)
        session.add(chat)
        session.flush()

        for i in range(random.randint(1, 4)):
            sender = buyer.user_id if i % 2 == 0 else pet.seller_id
            session.add(ChatMessage(chat_id=chat.chat_id, sender_id=sender, content=fake.sentence()))
        count += 1
    session.commit()
    return count


def seed_community(session, users: list[User]) -> Community:
    creator = users[0]
    community = Community(name="New Adopters", description="Tips for the first weeks at home", created_by=creator.user_id)
    session.add(community)
    session.flush()
    for user in users[:10]:
        session.add(CommunityMember(community_id=community.community_id, user_id=user.user_id))
    session.commit()
    return community


if __name__ == "__main__":
    # Full reseed pipeline: python -m app.scripts.seed_data
    init_db()
    session = SessionLocal()
    try:
        print("Resetting tables...")
        reset_db(session)

        print("Seeding users (40 regular, 8 business)...")
        regular, business, credentials = seed_users(session, 40, 8)

        print("Seeding pets (60)...")
        pets = seed_pets(session, business, 60)

        print("Seeding negotiations (10)...")
        negotiation_n = seed_negotiations(session, regular, pets, 10)

        print("Seeding community...")
        seed_community(session, regular)

        creds_path = export_credentials(credentials)
        print(f"Done. users={len(regular) + len(business)}, pets={len(pets)}, negotiations={negotiation_n}")
        print(f"Credentials export: {creds_path}")
    finally:
        session.close()
