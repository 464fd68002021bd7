"""Wire constants shared with the upstream provider and the browser."""

# Upstream routing header; the search resource dispatches on it.
PWS_HANDLER_HEADER = "x-pinterest-pws-handler"
PWS_HANDLER_VALUE = "www/search/[scope].js"

CSRF_HEADER = "x-csrftoken"
CSRF_COOKIE_NAME = "csrftoken"

# Headers copied from the image host onto proxied responses.
PROXY_SAFE_HEADERS = ("content-type", "cache-control")

EXPORT_FILENAME = "pinata_bookmarks.json"

FOOTER_NOTE = "Powered by Pinata &bull; Reverse image search uses TinEye"
