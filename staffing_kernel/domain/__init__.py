"""Pure domain layer: records, periods, capabilities, workflows, clock, events."""
