"""Leave module — leave requests and approval workflow."""
