"""
LogbookLM infrastructure (AWS CDK).

- environments.py   deployment environment registry + resolver
- core_stack.py     buckets, queues, network, Aurora, Step Functions, IAM
- app.py            CDK app entry point (`cdk synth`, `logbook-infra`)
"""
