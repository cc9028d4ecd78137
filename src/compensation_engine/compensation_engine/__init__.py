"""Teacher Compensation Engine package.

Organized by feature modules (policy, attendance, lateness, absence, waivers,
deductions, payroll, cache) with service/repository layers and MySQL adapters.
"""
