BASE_URL = "https://www.broadcastify.com"

LISTING_URLS = {
    "top": BASE_URL + "/listen/top",
    "state": BASE_URL + "/listen/stid/{state_id}",
}

FEED_URL = BASE_URL + "/listen/feed/{feed_id}"

# Kennung für Feeds, deren Staat aus der Konfig stammt (state_feeds_id).
CONFIG_STATE_ABBREV = "CS"
