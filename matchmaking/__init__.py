"""
Matching and compatibility engine for entrepreneurs and funders.

- scorer: Eight-factor compatibility score
- quota: Per-tier periodic allowances over Redis
- discovery: Ranked candidate lists (read path)
- swipe: Swipe state machine and super-like escalation (write path)
"""
