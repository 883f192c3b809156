"""Pipeline stages: pattern deduplication and sequence merging.

Each stage exposes a small, pure function API over lists of lines and never
mutates its inputs; tuning knobs live under `dedup.*` in the runtime
configuration.
"""
