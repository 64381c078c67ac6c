"""Office Hub — office management API: users, tasks, meetings, attendance, leave."""
