"""Pure domain layer: clock, DTOs, deposit policy."""
