"""
RMM Control Plane

Backend for the remote-monitoring-and-management dashboard.
Responsibilities:
- Computer inventory and group membership
- Procedures (remote scripts) and their simulated executions
- Monitors and their execution logs
- Custom one-off commands
- Third-party license tracking and the system license gate
- SMTP/AI settings and AI-assisted script generation
"""
