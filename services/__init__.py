"""
Service layer

Pure computations; nothing here touches the repository or publishes events:
- PipelineService: decision -> status/round rules and round progression
- QueueService: queue position, panel queue, wait estimates
- NamingService: serial numbers and QR code URLs
- AnalyticsService: feedback rating aggregation and dashboard counters
"""
