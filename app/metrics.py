from prometheus_client import Counter

PAGE_TRANSITIONS = Counter(
    "cms_page_transitions_total",
    "Page lifecycle transitions applied",
    ["from_status", "to_status", "trigger"],
)

SCHEDULER_SKIPPED = Counter(
    "cms_scheduler_skipped_total",
    "Pages the scheduler tick left untouched",
    ["reason"],
)
