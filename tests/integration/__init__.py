"""Application-level tests through the ASGI test client.

The upstream provider and image host are replaced by ``httpx.MockTransport``;
nothing here touches the network.

Run integration tests:
    pytest tests/integration/ -v -m integration
"""
