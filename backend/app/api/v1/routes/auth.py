"""Module: auth."""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.api.v1.routes.deps import get_current_identity, get_db
from app.core.errors import AppError, ConflictError, NotFoundError, ValidationError
from app.db.models.user import User
from app.services import auth as auth_service
from app.services import uploads
from app.services.auth import Identity
from app.services.read_models import serialize_user
from app.services.validation import normalize_optional, validate_email

router = APIRouter()


# Every field is optional here; presence rules depend on userType and are
# checked by app.services.validation.validate_registration.
class RegisterRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    userType: str | None = None
    phoneNumber: str | None = None
    firstName: str | None = None
    lastName: str | None = None
    businessName: str | None = None
    businessType: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zipCode: str | None = None
    licenseNumber: str | None = None
    licenseExpiry: str | None = None
    taxId: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class RefreshRequest(BaseModel):
    refreshToken: str | None = None


async def _read_registration(request: Request) -> tuple[RegisterRequest, UploadFile | None]:
    # JSON, or multipart form data carrying an optional profilePicture file.
    picture = None
    if request.headers.get("content-type", "").startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("profilePicture")
        if upload is not None and not isinstance(upload, str):
            picture = upload
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
    else:
        try:
            fields = await request.json()
        except ValueError:
            raise ValidationError("Validation Error", "Request body must be JSON or multipart form data")

    try:
        return RegisterRequest.model_validate(fields), picture
    except PydanticValidationError as exc:
        names = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise ValidationError("Validation Error", {"fields": names})


@router.post("/register", status_code=201, summary="Register a regular or business user")
async def register(request: Request, db: Session = Depends(get_db)):
    payload, picture = await _read_registration(request)
    profile = payload.model_dump()
    # Validate before touching the content root so a bad form leaves no file behind.
    auth_service.validate_new_account(db, profile)

    filename = await uploads.save_image(picture, uploads.PROFILES, "profile")
    try:
        user, tokens = auth_service.register(db, profile, profile_picture=filename)
    except AppError:
        uploads.delete_image(filename, uploads.PROFILES)
        raise
    return {"message": "Registration successful", "user": serialize_user(user), **tokens}


@router.post("/login", summary="Exchange credentials for access/refresh tokens")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise ValidationError("Validation Error", "Email and password are required")
    user, tokens = auth_service.login(db, payload.email, payload.password)
    return {"message": "Login successful", "user": serialize_user(user), **tokens}


@router.post("/refresh-token", summary="Mint a new access/refresh pair")
def refresh_token(payload: RefreshRequest, db: Session = Depends(get_db)):
    return auth_service.refresh(db, payload.refreshToken)


@router.get("/user", summary="Current user")
def current_user(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    user = db.get(User, identity.user_id)
    if not user:
        raise NotFoundError("User not found", "The requested user could not be found")
    return serialize_user(user)


@router.put("/profile", summary="Update own profile")
async def update_profile(
    name: str | None = Form(default=None),
    email: str | None = Form(default=None),
    phoneNumber: str | None = Form(default=None),
    address: str | None = Form(default=None),
    profilePicture: UploadFile | None = File(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    user = db.get(User, identity.user_id)
    if not user:
        raise NotFoundError("User not found")

    if email is not None and email.strip():
        new_email = validate_email(email)
        if new_email != user.email:
            taken = auth_service.find_user_by_email(db, new_email)
            if taken and taken.user_id != user.user_id:
                raise ConflictError("Email already in use")
            user.email = new_email

    if normalize_optional(name):
        user.name = name.strip()
    if normalize_optional(phoneNumber):
        user.phone_number = phoneNumber.strip()
    if address is not None:
        user.address = normalize_optional(address)

    filename = await uploads.save_image(profilePicture, uploads.PROFILES, "profile")
    if filename:
        uploads.delete_image(user.profile_picture, uploads.PROFILES)
        user.profile_picture = filename

    db.commit()
    db.refresh(user)
    return serialize_user(user)
