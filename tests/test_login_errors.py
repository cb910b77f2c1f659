from __future__ import annotations

from familyaid.api_client import ApiError, ApiTimeoutError, ApiTransportError, ApiUnauthorizedError
from familyaid.models.enums import LoginFailureKind
from familyaid.services.login_errors import classify_login_error, failure_message

_LOCKED_AR = "الحساب محظور مؤقتاً. يرجى المحاولة بعد 15 دقيقة"
_LOCKED_AR_FIRST = "تم حظر الحساب لمدة 30 دقيقة بسبب محاولات تسجيل الدخول الفاشلة المتكررة"
_REMAINING_AR = "اسم المستخدم أو كلمة المرور غير صحيحة. المحاولات المتبقية: 3"


def test_structured_lockout() -> None:
    exc = ApiError("Locked", status_code=403, kind="locked_out", details={"minutes": 15})

    failure = classify_login_error(exc)

    assert failure.kind is LoginFailureKind.LOCKED_OUT
    assert failure.minutes == 15
    assert failure_message(failure) == (
        "Account locked for 15 minutes. Please wait before trying again."
    )


def test_structured_remaining_attempts_accepts_camel_case_and_strings() -> None:
    exc = ApiError(
        "Wrong password", status_code=401,
        kind="remaining_attempts", details={"remainingAttempts": "2"},
    )

    failure = classify_login_error(exc)

    assert failure.kind is LoginFailureKind.REMAINING_ATTEMPTS
    assert failure.remaining_attempts == 2
    assert failure_message(failure) == "Incorrect username or password. 2 attempts remaining."


def test_arabic_lockout_messages() -> None:
    first = classify_login_error(ApiError(_LOCKED_AR_FIRST, status_code=403))
    later = classify_login_error(ApiError(_LOCKED_AR, status_code=403))

    assert (first.kind, first.minutes) == (LoginFailureKind.LOCKED_OUT, 30)
    assert (later.kind, later.minutes) == (LoginFailureKind.LOCKED_OUT, 15)


def test_lockout_classification_is_idempotent() -> None:
    exc = ApiError(_LOCKED_AR, status_code=403)

    results = [classify_login_error(exc) for _ in range(3)]

    assert results[0] == results[1] == results[2]
    assert {failure_message(r) for r in results} == {
        "Account locked for 15 minutes. Please wait before trying again.",
    }


def test_arabic_remaining_attempts() -> None:
    failure = classify_login_error(ApiUnauthorizedError(_REMAINING_AR, status_code=401))

    assert failure.kind is LoginFailureKind.REMAINING_ATTEMPTS
    assert failure.remaining_attempts == 3
    assert failure.server_message == _REMAINING_AR


def test_english_wordings() -> None:
    locked = classify_login_error(ApiError("Account locked for 10 minutes", status_code=403))
    remaining = classify_login_error(ApiError("Invalid password, 4 attempts left", status_code=401))
    labelled = classify_login_error(ApiError("Remaining attempts: 1", status_code=401))

    assert (locked.kind, locked.minutes) == (LoginFailureKind.LOCKED_OUT, 10)
    assert (remaining.kind, remaining.remaining_attempts) == (
        LoginFailureKind.REMAINING_ATTEMPTS, 4,
    )
    assert labelled.remaining_attempts == 1


def test_unknown_structured_kind_falls_back_to_message_text() -> None:
    exc = ApiError(_LOCKED_AR, status_code=403, kind="rate_limited")
    assert classify_login_error(exc).kind is LoginFailureKind.LOCKED_OUT


def test_transport_failures() -> None:
    timed_out = classify_login_error(ApiTimeoutError("Request to /api/login timed out."))
    offline = classify_login_error(ApiTransportError("Cannot reach the server: refused"))

    assert timed_out.kind is LoginFailureKind.TIMED_OUT
    assert offline.kind is LoginFailureKind.NETWORK_ERROR
    assert failure_message(offline) == "Cannot reach the server. Check your internet connection."


def test_everything_else_is_invalid_credentials() -> None:
    plain = classify_login_error(ApiUnauthorizedError("Unauthorized", status_code=401))
    unexpected = classify_login_error(RuntimeError("boom"))

    assert plain.kind is LoginFailureKind.INVALID_CREDENTIALS
    assert unexpected.kind is LoginFailureKind.INVALID_CREDENTIALS
    assert failure_message(plain) == "Login failed: incorrect username or password."
