import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the API"""

    def __init__(self, status_code: int, payload=None):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"API error {status_code}: {self.message}")

    @property
    def message(self) -> str:
        if isinstance(self.payload, dict):
            return str(self.payload.get('error') or self.payload.get('detail') or self.payload)
        return str(self.payload)


@dataclass
class Page:
    """One page of a list endpoint"""
    results: List[Dict]
    count: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool = False
    has_previous: bool = False
    extra: Dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict) -> 'Page':
        known = {'results', 'count', 'page', 'page_size', 'total_pages', 'next', 'previous'}
        return cls(
            results=payload.get('results', []),
            count=payload.get('count', 0),
            page=payload.get('page', 1),
            page_size=payload.get('page_size', 0),
            total_pages=payload.get('total_pages', 1),
            has_next=payload.get('next') is not None,
            has_previous=payload.get('previous') is not None,
            extra={key: value for key, value in payload.items() if key not in known},
        )


class ApiClient:
    """
    Thin wrapper over requests.Session for the /api/v1 endpoints.

    Writes send a fresh Idempotency-Key unless the caller passes one, so a
    retried call with the same key is applied once by the server.
    """

    def __init__(self, base_url: str, session=None, timeout: float = 10):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.access_token: Optional[str] = None
        self.refresh_token: Optional[str] = None

    def _url(self, *parts) -> str:
        path = '/'.join(str(part).strip('/') for part in parts if part not in (None, ''))
        return f"{self.base_url}/{path}/"

    def request(self, method: str, path_parts, json=None, params=None, idempotency_key=None):
        headers = {}
        if self.access_token:
            headers['Authorization'] = f'Bearer {self.access_token}'
        if idempotency_key:
            headers['Idempotency-Key'] = idempotency_key

        url = self._url(*path_parts)
        try:
            response = self.session.request(
                method, url, json=json, params=params, headers=headers, timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise

        if response.status_code == 204:
            return None
        try:
            payload = response.json()
        except ValueError:
            payload = response.text
        if not 200 <= response.status_code < 300:
            logger.warning(f"{method} {url} returned {response.status_code}")
            raise ApiError(response.status_code, payload)
        return payload

    def login(self, username: str, password: str) -> Dict:
        payload = self.request('POST', ['auth', 'login'], json={'username': username, 'password': password})
        self.access_token = payload.get('access')
        self.refresh_token = payload.get('refresh')
        return payload

    def list(self, resource: str, page: int = 1, page_size: Optional[int] = None, **filters) -> Page:
        params = {key: value for key, value in filters.items() if value not in (None, '')}
        params['page'] = page
        if page_size:
            params['page_size'] = page_size
        return Page.from_payload(self.request('GET', [resource], params=params))

    def retrieve(self, resource: str, pk) -> Dict:
        return self.request('GET', [resource, pk])

    def create(self, resource: str, data: Dict, idempotency_key: Optional[str] = None) -> Dict:
        return self.request('POST', [resource], json=data, idempotency_key=idempotency_key or str(uuid.uuid4()))

    def update(self, resource: str, pk, data: Dict, partial: bool = True) -> Dict:
        return self.request('PATCH' if partial else 'PUT', [resource, pk], json=data)

    def delete(self, resource: str, pk) -> None:
        self.request('DELETE', [resource, pk])

    def action(self, resource: str, pk, name: str, data: Optional[Dict] = None,
               idempotency_key: Optional[str] = None):
        """POST to a transition endpoint such as purchase-orders/<pk>/approve/"""
        return self.request(
            'POST', [resource, pk, name], json=data or {},
            idempotency_key=idempotency_key or str(uuid.uuid4()),
        )
