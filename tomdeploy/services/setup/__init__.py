"""Setup (provisioning) services.

Convergence steps that *provision* or *verify* the cloud project, the
Kubernetes cluster and everything deployed onto it. Every step probes current
state first and mutates only what is missing; nothing here deletes resources.
"""
