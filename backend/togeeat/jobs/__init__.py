"""Jobs — entry points run by an external scheduler (cron, k8s CronJob)."""
