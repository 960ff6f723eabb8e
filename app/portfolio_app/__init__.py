"""Portfolio data layer: record service, notifications and list views."""
