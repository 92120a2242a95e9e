# project-asset-sync: Core Services
# Pure helpers shared by components and adapters; no I/O here
