"""
Csystem REST client
===================

Thin async wrapper over the HTTP API. Every call takes the caller's
``AuthSession`` explicitly, nothing is read from ambient state.

Usage:
    async with CsystemClient("http://localhost:8000") as client:
        session = await client.auth.login("a@b.com", "secret123")
        profile = await client.profile.get(session)

Non-2xx responses raise ``ApiError``; transport failures raise
``ApiError(code="TRANSPORT_ERROR")``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

TRANSPORT_ERROR = "TRANSPORT_ERROR"


@dataclass
class AuthSession:
    token: str
    person_id: str
    role: str
    core_id: Optional[str] = None

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @classmethod
    def from_token_response(cls, body: Dict[str, Any]) -> "AuthSession":
        person = body.get("person") or {}
        return cls(
            token=body["access_token"],
            person_id=person.get("id", ""),
            role=person.get("role", ""),
            core_id=person.get("core_id"),
        )


class ApiError(Exception):
    """A failed API call, carrying the server's error shape."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{status_code}] {code}: {message}")

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409

    @property
    def is_transport(self) -> bool:
        return self.code == TRANSPORT_ERROR

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if "code" in body and "message" in body:
            return cls(response.status_code, body["code"], body["message"], body.get("details"))

        # FastAPI's own errors: {"detail": "..."} or {"detail": [{...}, ...]}
        detail = body.get("detail")
        if isinstance(detail, list):
            message = "; ".join(str(item.get("msg", item)) for item in detail if isinstance(item, dict)) or "Invalid request"
            return cls(response.status_code, "VALIDATION_ERROR", message, {"errors": detail})
        return cls(response.status_code, f"HTTP_{response.status_code}", str(detail or response.reason_phrase))


class _ApiGroup:
    def __init__(self, client: "CsystemClient"):
        self._client = client

    async def _call(self, method: str, path: str, session: Optional[AuthSession] = None, **kwargs) -> Any:
        return await self._client.request(method, path, session, **kwargs)


# -------------------------------
# API groups
# -------------------------------
class AuthApi(_ApiGroup):
    async def register(self, data: Dict[str, Any]) -> AuthSession:
        body = await self._call("POST", "/auth/register", json=data)
        return AuthSession.from_token_response(body)

    async def login(self, email: str, password: str) -> AuthSession:
        body = await self._call("POST", "/auth/login", json={"email": email, "password": password})
        return AuthSession.from_token_response(body)

    async def check_email(self, email: str) -> Dict[str, Any]:
        return await self._call("GET", "/auth/check-email", params={"email": email})

    async def clubs(self) -> List[Dict[str, Any]]:
        return await self._call("GET", "/auth/clubs")


class ProfileApi(_ApiGroup):
    async def get(self, session: AuthSession) -> Dict[str, Any]:
        return await self._call("GET", "/profile", session)

    async def update(self, session: AuthSession, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("PUT", "/profile", session, json=payload)

    async def set_avatar(self, session: AuthSession, avatar_url: str) -> Dict[str, Any]:
        return await self._call("POST", "/profile/avatar", session, json={"avatar_url": avatar_url})

    async def get_user(self, session: AuthSession, user_id: str) -> Dict[str, Any]:
        return await self._call("GET", f"/profile/{user_id}", session)

    async def link_child(self, session: AuthSession, child_core_id: str) -> Dict[str, Any]:
        return await self._call("POST", "/profile/link-child", session, json={"child_core_id": child_core_id})

    async def integration_requests(self, session: AuthSession) -> List[Dict[str, Any]]:
        return await self._call("GET", "/profile/integration-requests", session)

    async def respond_integration(self, session: AuthSession, link_id: str, approve: bool) -> Dict[str, Any]:
        return await self._call("POST", "/profile/respond-integration", session,
                                json={"link_id": link_id, "approve": approve})

    async def children(self, session: AuthSession) -> List[Dict[str, Any]]:
        return await self._call("GET", "/profile/children", session)

    async def update_child(self, session: AuthSession, athlete_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("PUT", f"/profile/child/{athlete_id}", session, json=payload)

    async def club_status(self, session: AuthSession) -> List[Dict[str, Any]]:
        return await self._call("GET", "/profile/club-status", session)

    async def join_club(self, session: AuthSession, club_id: str, athlete_id: Optional[str] = None,
                        notes: Optional[str] = None) -> Dict[str, Any]:
        payload = {"club_id": club_id, "athlete_id": athlete_id, "notes": notes}
        return await self._call("POST", "/profile/join-club", session, json=payload)

    async def leave_club(self, session: AuthSession, athlete_id: Optional[str] = None,
                         reason: Optional[str] = None) -> Dict[str, Any]:
        payload = {"athlete_id": athlete_id, "reason": reason}
        return await self._call("POST", "/profile/leave-club", session, json=payload)

    async def club_history(self, session: AuthSession, athlete_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"athlete_id": athlete_id} if athlete_id else None
        return await self._call("GET", "/profile/club-history", session, params=params)


class ClubsApi(_ApiGroup):
    async def requests(self, session: AuthSession) -> List[Dict[str, Any]]:
        return await self._call("GET", "/clubs/requests", session)

    async def decide(self, session: AuthSession, request_id: str, decision: str,
                     notes: Optional[str] = None) -> Dict[str, Any]:
        return await self._call("POST", f"/clubs/requests/{request_id}/decision", session,
                                json={"decision": decision, "notes": notes})

    async def remove_member(self, session: AuthSession, athlete_id: str) -> Dict[str, Any]:
        return await self._call("POST", f"/clubs/members/{athlete_id}/remove", session)

    async def members(self, session: AuthSession) -> List[Dict[str, Any]]:
        return await self._call("GET", "/clubs/members", session)


class ModulesApi(_ApiGroup):
    async def list(self, session: AuthSession, status: Optional[str] = None,
                   category: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {k: v for k, v in {"status": status, "category": category}.items() if v}
        return await self._call("GET", "/modules", session, params=params)

    async def get(self, session: AuthSession, module_id: str) -> Dict[str, Any]:
        return await self._call("GET", f"/modules/{module_id}", session)

    async def create(self, session: AuthSession, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("POST", "/modules", session, json=payload)

    async def update(self, session: AuthSession, module_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("PUT", f"/modules/{module_id}", session, json=payload)

    async def delete(self, session: AuthSession, module_id: str) -> Dict[str, Any]:
        return await self._call("DELETE", f"/modules/{module_id}", session)

    async def field_types(self, session: AuthSession) -> List[Dict[str, Any]]:
        return await self._call("GET", "/modules/field-types", session)

    async def add_field(self, session: AuthSession, module_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("POST", f"/modules/{module_id}/fields", session, json=payload)

    async def update_field(self, session: AuthSession, module_id: str, field_id: str,
                           payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("PUT", f"/modules/{module_id}/fields/{field_id}", session, json=payload)

    async def delete_field(self, session: AuthSession, module_id: str, field_id: str) -> Dict[str, Any]:
        return await self._call("DELETE", f"/modules/{module_id}/fields/{field_id}", session)


class AssessmentsApi(_ApiGroup):
    async def create(self, session: AuthSession, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("POST", "/assessments", session, json=payload)

    async def list(self, session: AuthSession, athlete_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"athlete_id": athlete_id} if athlete_id else None
        return await self._call("GET", "/assessments", session, params=params)

    async def get(self, session: AuthSession, assessment_id: str) -> Dict[str, Any]:
        return await self._call("GET", f"/assessments/{assessment_id}", session)


class DocumentsApi(_ApiGroup):
    async def upload(self, session: AuthSession, core_id: str, title: str, filename: str, content: bytes,
                     category: str = "OTHER", content_type: str = "application/octet-stream",
                     uploaded_by: Optional[str] = None, uploaded_by_id: Optional[str] = None) -> Dict[str, Any]:
        data = {"core_id": core_id, "title": title, "category": category}
        if uploaded_by:
            data["uploaded_by"] = uploaded_by
        if uploaded_by_id:
            data["uploaded_by_id"] = uploaded_by_id
        files = {"file": (filename, content, content_type)}
        return await self._call("POST", "/documents/upload", session, data=data, files=files)

    async def list(self, session: AuthSession, core_id: str) -> List[Dict[str, Any]]:
        return await self._call("GET", f"/documents/{core_id}", session)

    async def rename(self, session: AuthSession, document_id: str, title: str) -> Dict[str, Any]:
        return await self._call("POST", f"/documents/{document_id}/rename", session, json={"title": title})

    async def delete(self, session: AuthSession, document_id: str) -> Dict[str, Any]:
        return await self._call("DELETE", f"/documents/{document_id}", session)


class ShippingApi(_ApiGroup):
    async def orders(self, session: AuthSession) -> List[Dict[str, Any]]:
        return await self._call("GET", "/shipping", session)

    async def courier_info(self, session: AuthSession, order_id: str) -> Optional[Dict[str, Any]]:
        return await self._call("GET", f"/shipping/{order_id}", session)

    async def upsert_courier_info(self, session: AuthSession, order_id: str,
                                  payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("POST", f"/shipping/{order_id}", session, json=payload)

    async def tracking(self, session: AuthSession, order_id: str) -> List[Dict[str, Any]]:
        return await self._call("GET", f"/shipping/{order_id}/tracking", session)


# -------------------------------
# Client
# -------------------------------
class CsystemClient:
    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None,
                 api_prefix: str = "/api", timeout: float = 10.0):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)
        self._prefix = api_prefix.rstrip("/")
        self.auth = AuthApi(self)
        self.profile = ProfileApi(self)
        self.clubs = ClubsApi(self)
        self.modules = ModulesApi(self)
        self.assessments = AssessmentsApi(self)
        self.documents = DocumentsApi(self)
        self.shipping = ShippingApi(self)

    async def request(self, method: str, path: str, session: Optional[AuthSession] = None, **kwargs) -> Any:
        headers = session.headers if session else {}
        try:
            response = await self._http.request(method, f"{self._prefix}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            raise ApiError(0, TRANSPORT_ERROR, f"Could not reach the server: {exc}")

        if response.status_code >= 400:
            error = ApiError.from_response(response)
            level = logging.ERROR if response.status_code >= 500 else logging.INFO
            logger.log(level, f"{method} {path} -> {error}")
            raise error

        if not response.content:
            return None
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "CsystemClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
