"""
Realm proxy service
Forwards player requests for an unlocked realm to the realm's internal service
"""
import logging
from typing import Optional

import requests
from flask import Response

from gatekeeper.error_handlers.exceptions import ExternalAPIException
from gatekeeper.realms import Realm


# Hop-by-hop headers are connection-specific and must not be forwarded
HOP_BY_HOP_HEADERS = {
    'connection', 'keep-alive', 'proxy-authenticate', 'proxy-authorization',
    'te', 'trailers', 'transfer-encoding', 'upgrade', 'content-encoding',
    'content-length', 'host',
}


class RealmProxy:
    """Service class for forwarding requests to realm services"""

    def __init__(self, app=None):
        self.logger = logging.getLogger(__name__)
        self.session: Optional[requests.Session] = None
        self.timeout = 10

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize the proxy with Flask app config"""
        self.timeout = app.config.get('REALM_PROXY_TIMEOUT', 10)
        self.session = requests.Session()
        self.session.headers.update({'user-agent': 'yggdrasil-gatekeeper/1.0 (+requests)'})
        app.extensions['realm_proxy'] = self

    def forward(self, realm: Realm, path: str, flask_request) -> Response:
        """
        Forward `flask_request` to `realm` and relay the response.

        Raises:
            ExternalAPIException: If the realm service cannot be reached
        """
        url = f"{realm.internal_url.rstrip('/')}/{path.lstrip('/')}"
        headers = {
            key: value for key, value in flask_request.headers.items()
            if key.lower() not in HOP_BY_HOP_HEADERS and key.lower() != 'cookie'
        }

        try:
            upstream = self.session.request(
                method=flask_request.method,
                url=url,
                params=flask_request.args,
                data=flask_request.get_data(),
                headers=headers,
                allow_redirects=False,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            self.logger.error(f"Proxy error for realm {realm.name}: {flask_request.method} {url} - {str(e)}")
            raise ExternalAPIException('Bad Gateway')

        self.logger.info(f"{flask_request.method} {url} - Status: {upstream.status_code}")

        response_headers = [
            (key, value) for key, value in upstream.headers.items()
            if key.lower() not in HOP_BY_HOP_HEADERS
        ]
        return Response(upstream.content, status=upstream.status_code, headers=response_headers)
