"""Fixed identities used by the auction engine."""

# Caller id the expiry sweeper acts under. It may end (finalize) any auction
# but owns none, so edit/activate/delete stay seller-only.
SCHEDULER_CALLER_ID = "system:expiry-sweeper"
