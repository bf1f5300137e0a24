"""Response cache for generated answers.

Backends (redis, in-memory) store generated text keyed by question, country
and model. CacheGateway sits in front of a backend and turns every backend
failure into a miss so a broken cache never aborts a run.
"""
