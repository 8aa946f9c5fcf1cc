"""
Services Layer

- Engine modules (round_robin, bracket_builder, schedule_assembler,
  schedule_mutator, standings) work on plain values and never touch the DB
- *_service modules load rosters and matches through a Session and persist
- Nothing here depends on HTTP request/response objects
"""
