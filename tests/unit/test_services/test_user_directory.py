"""Tests for provider binding and profile merging in the user directory."""

import pytest

from kejah.models.user import AuthProviderName, PhoneVerificationStatus, User, UserRole
from kejah.services.user_directory import UserDirectory
from kejah.utils.errors import AuthenticationError, ProviderMismatch, ValidationError


@pytest.mark.unit
@pytest.mark.asyncio
async def test_email_sign_up_binds_email(directory, user_store):
    session = await directory.sign_up_with_email("Jane Wanjiku", "jane@example.com", "s3cret!")

    stored = await user_store.get_by_id(session.user.uid)
    assert session.provider == AuthProviderName.EMAIL
    assert stored.auth_provider == AuthProviderName.EMAIL
    assert stored.role == UserRole.BUYER
    assert stored.display_name == "Jane Wanjiku"
    assert stored.created_at_iso is not None
    assert stored.last_login_iso is not None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_email_sign_in_again_allowed(directory):
    created = await directory.sign_up_with_email("Jane", "jane@example.com", "s3cret!")
    await directory.sign_out(created)

    session = await directory.sign_in_with_email("jane@example.com", "s3cret!")

    assert session.user.uid == created.user.uid
    assert session.user.created_at_iso == created.user.created_at_iso


@pytest.mark.unit
@pytest.mark.asyncio
async def test_google_sign_in_binds_google(directory, memory_auth):
    session = await directory.sign_in_with_google("sam.otieno@gmail.com")
    again = await directory.sign_in_with_google("sam.otieno@gmail.com")

    assert session.user.auth_provider == AuthProviderName.GOOGLE
    assert again.user.uid == session.user.uid
    assert memory_auth.active_uid == session.user.uid


@pytest.mark.unit
@pytest.mark.asyncio
async def test_google_account_cannot_use_password(stub_auth, user_store):
    """Test a google-bound account is rejected on email sign-in and signed out."""
    directory = UserDirectory(user_store, stub_auth)
    await directory.sign_in_with_google("id-token")

    with pytest.raises(ProviderMismatch) as exc_info:
        await directory.sign_in_with_email("jane@example.com", "password")

    assert exc_info.value.bound_provider == "google"
    assert exc_info.value.attempted_provider == "email"
    stub_auth.sign_out.assert_awaited_once()
    stored = await user_store.get_by_id("uid_shared_identity")
    assert stored.auth_provider == AuthProviderName.GOOGLE


@pytest.mark.unit
@pytest.mark.asyncio
async def test_email_account_cannot_use_google(stub_auth, user_store):
    directory = UserDirectory(user_store, stub_auth)
    await directory.sign_up_with_email("Jane", "jane@example.com", "password")

    with pytest.raises(ProviderMismatch):
        await directory.sign_in_with_google("id-token")

    stub_auth.sign_out.assert_awaited_once()
    assert (await user_store.get_by_id("uid_shared_identity")).auth_provider == AuthProviderName.EMAIL


@pytest.mark.unit
@pytest.mark.asyncio
async def test_mismatch_signs_out_before_raising(user_store, memory_auth):
    """Test the provider session is closed by the time ProviderMismatch surfaces."""
    directory = UserDirectory(user_store, memory_auth)
    session = await directory.sign_in_with_google("jane@example.com")
    await user_store.upsert(session.user.uid, {"auth_provider": AuthProviderName.EMAIL})

    with pytest.raises(ProviderMismatch):
        await directory.sign_in_with_google("jane@example.com")

    assert memory_auth.active_uid is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unbound_seeded_profile_is_bound_on_first_sign_in(stub_auth, user_store):
    """Test profile data wins over claims and the provider gets bound."""
    await user_store.upsert("uid_shared_identity", {
        "display_name": "Agent Jane",
        "email": "jane@example.com",
        "role": UserRole.AGENT,
        "phone_number": "+254700000001",
        "is_verified": True,
    })
    directory = UserDirectory(user_store, stub_auth)

    session = await directory.sign_in_with_email("jane@example.com", "password")

    assert session.user.auth_provider == AuthProviderName.EMAIL
    assert session.user.role == UserRole.AGENT
    assert session.user.display_name == "Agent Jane"
    assert session.user.phone_number == "+254700000001"
    stub_auth.sign_out.assert_not_awaited()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_bad_password_propagates(directory):
    await directory.sign_up_with_email("Jane", "jane@example.com", "s3cret!")

    with pytest.raises(AuthenticationError):
        await directory.sign_in_with_email("jane@example.com", "wrong")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_phone_verification_flow(directory, user_store):
    session = await directory.sign_up_with_email("Jane", "jane@example.com", "s3cret!")

    verification = await directory.start_phone_verification(session, "+254 712 345 678")
    assert verification.status == PhoneVerificationStatus.PENDING

    with pytest.raises(AuthenticationError):
        await directory.confirm_phone_verification(session, verification, "000000")
    assert verification.status == PhoneVerificationStatus.PENDING

    verified = await directory.confirm_phone_verification(session, verification, "123456")

    assert verification.status == PhoneVerificationStatus.VERIFIED
    assert verified.user.phone_number == "+254 712 345 678"
    assert verified.user.is_verified is True
    assert (await user_store.get_by_id(session.user.uid)).is_verified is True

    with pytest.raises(AuthenticationError):
        await directory.confirm_phone_verification(verified, verification, "123456")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_invalid_phone_number(directory):
    session = await directory.sign_up_with_email("Jane", "jane@example.com", "s3cret!")

    with pytest.raises(ValidationError):
        await directory.start_phone_verification(session, "call me")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_user_cannot_rebind(directory):
    session = await directory.sign_up_with_email("Jane", "jane@example.com", "s3cret!")

    with pytest.raises(ValidationError):
        await directory.update_user(session.user.uid, {"auth_provider": "google"})

    updated = await directory.update_user(session.user.uid, {"display_name": "Jane W."})
    assert updated.display_name == "Jane W."


@pytest.mark.unit
@pytest.mark.asyncio
async def test_get_agents(seeded_backend):
    directory = UserDirectory.from_backend(seeded_backend)

    agents = await directory.get_agents()
    user = await directory.get_user("agent_1")

    assert len(agents) == 4
    assert isinstance(user, User)
    assert user.display_name == "Sarah Jenkins"
