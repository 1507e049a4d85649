# ╔════════════════════════════════════════════════════════════════════════════╗
# ║                    FETCHER EVENT FINGERPRINTING MODULE                     ║
# ║    Generates stable fingerprints for events so duplicates can be dropped.  ║
# ╚════════════════════════════════════════════════════════════════════════════╝

"""
fingerprint.py: Event fingerprinting utilities.
"""
import hashlib
import json

# --- clean ---
# Strips and collapses whitespace so cosmetic differences do not matter.
def clean(text: str) -> str:
    if not text:
        return ""
    return " ".join(text.strip().split())

# --- compute_event_fingerprint ---
# Generates an MD5 fingerprint over the fields a consumer actually sees:
# title, start and end instants (epoch milliseconds) and the full-day flag.
# Args:
#     title: The event title.
#     start_ms / end_ms: Start and end as epoch milliseconds.
#     full_day_event: Whether the event is a full-day event.
# Returns: A hex digest string.
def compute_event_fingerprint(title: str, start_ms: int, end_ms: int, full_day_event: bool) -> str:
    trimmed = {
        "title": clean(title),
        "start": start_ms,
        "end": end_ms,
        "full_day": bool(full_day_event),
    }
    normalized_json = json.dumps(trimmed, sort_keys=True)
    return hashlib.md5(normalized_json.encode("utf-8")).hexdigest()
