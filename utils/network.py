from fastapi import Request


def get_client_ip(request: Request) -> str:
    """Peer address of the connection.

    Forwarded headers are applied upstream by ProxyHeadersMiddleware, and only
    for proxies listed in FORWARDED_ALLOW_IPS.
    """
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
