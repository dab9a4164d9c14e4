"""
Analytics Package
=================
Pure calculators over a PortfolioSnapshot.

Modules:
- schedule: Critical path method over task dependencies
- resources: Member utilization, competency groups, FTE timeline
- budget: Costs per category, burnrate, variance traffic light
- status: Automatic project traffic light
"""
