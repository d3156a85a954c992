"""Text, JSON and Rich console rendering of reverse-dependency reports."""
