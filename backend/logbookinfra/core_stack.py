"""
Core infrastructure for LogbookLM.

One stack per environment:
- customer-managed KMS key shared by every encrypted resource,
- documents + artifacts buckets,
- ingestion queue with a dead-letter queue,
- VPC (public / private / isolated tiers, no NAT gateways),
- Aurora PostgreSQL Serverless v2 cluster,
- Step Functions ingestion workflow (placeholder definition),
- IAM roles for the workflow and the ingestion Lambdas.

Everything is DESTROY on teardown: these environments hold no data that is
not reproducible from the source documents.
"""

from __future__ import annotations

from typing import Optional

import aws_cdk as cdk
from aws_cdk import (
    Duration,
    RemovalPolicy,
    aws_ec2 as ec2,
    aws_iam as iam,
    aws_kms as kms,
    aws_logs as logs,
    aws_rds as rds,
    aws_s3 as s3,
    aws_sqs as sqs,
    aws_stepfunctions as sfn,
)
from constructs import Construct

from .environments import EnvironmentSettings

PROJECT = "logbooklm"
DATABASE_NAME = "logbooklm"

QUEUE_VISIBILITY_TIMEOUT = Duration.minutes(5)
QUEUE_MAX_RECEIVE_COUNT = 5
DEAD_LETTER_RETENTION = Duration.days(14)
NONCURRENT_ARTIFACT_EXPIRATION = Duration.days(30)
BACKUP_RETENTION = Duration.days(7)


class CoreInfrastructureStack(cdk.Stack):
    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        env_config: EnvironmentSettings,
        env: Optional[cdk.Environment] = None,
    ) -> None:
        super().__init__(
            scope,
            construct_id,
            description=(
                "Core infrastructure for GA Maintenance LogbookLM: buckets, queues, "
                "Aurora, Step Functions, and IAM roles."
            ),
            env=env,
            stack_name=construct_id,
            tags={"Environment": env_config.name},
        )
        self.env_config = env_config
        prefix = f"{PROJECT}-{env_config.name}"

        # ------------------------------------------------------------------
        # Encryption + storage
        # ------------------------------------------------------------------
        self.data_key = kms.Key(
            self,
            "PrimaryDataKey",
            alias=f"alias/{PROJECT}/{env_config.name}/primary",
            enable_key_rotation=True,
            removal_policy=RemovalPolicy.DESTROY,
        )

        self.documents_bucket = self._encrypted_bucket("DocumentsBucket")
        self.artifacts_bucket = self._encrypted_bucket(
            "ArtifactsBucket",
            lifecycle_rules=[
                s3.LifecycleRule(
                    id="expire-noncurrent-artifacts",
                    noncurrent_version_expiration=NONCURRENT_ARTIFACT_EXPIRATION,
                ),
            ],
        )

        # ------------------------------------------------------------------
        # Queues
        # ------------------------------------------------------------------
        self.dead_letter_queue = sqs.Queue(
            self,
            "IngestionDeadLetterQueue",
            queue_name=f"{prefix}-ingestion-dlq",
            retention_period=DEAD_LETTER_RETENTION,
            encryption=sqs.QueueEncryption.KMS,
            encryption_master_key=self.data_key,
        )

        self.ingestion_queue = sqs.Queue(
            self,
            "IngestionQueue",
            queue_name=f"{prefix}-ingestion",
            visibility_timeout=QUEUE_VISIBILITY_TIMEOUT,
            dead_letter_queue=sqs.DeadLetterQueue(
                queue=self.dead_letter_queue,
                max_receive_count=QUEUE_MAX_RECEIVE_COUNT,
            ),
            encryption=sqs.QueueEncryption.KMS,
            encryption_master_key=self.data_key,
        )

        # ------------------------------------------------------------------
        # Network + database
        # ------------------------------------------------------------------
        self.vpc = ec2.Vpc(
            self,
            "ApplicationVpc",
            max_azs=2,
            nat_gateways=0,
            subnet_configuration=[
                ec2.SubnetConfiguration(name="Public", subnet_type=ec2.SubnetType.PUBLIC),
                ec2.SubnetConfiguration(name="Private", subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS),
                ec2.SubnetConfiguration(name="Isolated", subnet_type=ec2.SubnetType.PRIVATE_ISOLATED),
            ],
        )

        self.database_security_group = ec2.SecurityGroup(
            self,
            "DatabaseSecurityGroup",
            vpc=self.vpc,
            description="Restrict Aurora access to application workloads.",
            allow_all_outbound=True,
        )

        capacity = env_config.aurora_capacity
        self.aurora_cluster = rds.DatabaseCluster(
            self,
            "AuroraCluster",
            cluster_identifier=f"{prefix}-aurora",
            engine=rds.DatabaseClusterEngine.aurora_postgres(
                version=rds.AuroraPostgresEngineVersion.VER_15_3,
            ),
            writer=rds.ClusterInstance.serverless_v2(
                "Writer",
                allow_major_version_upgrade=False,
                enable_performance_insights=True,
            ),
            serverless_v2_min_capacity=capacity.min_capacity,
            serverless_v2_max_capacity=capacity.max_capacity,
            vpc=self.vpc,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED),
            default_database_name=DATABASE_NAME,
            security_groups=[self.database_security_group],
            storage_encrypted=True,
            storage_encryption_key=self.data_key,
            removal_policy=RemovalPolicy.DESTROY,
            backup=rds.BackupProps(retention=BACKUP_RETENTION),
        )

        # ------------------------------------------------------------------
        # Workflow
        # ------------------------------------------------------------------
        workflow_log_group = logs.LogGroup(
            self,
            "IngestionWorkflowLogs",
            log_group_name=f"/aws/vendedlogs/states/{PROJECT}/{env_config.name}",
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=RemovalPolicy.DESTROY,
        )

        # Single pass-through state until the ingestion Lambdas exist.
        workflow_definition = sfn.Chain.start(
            sfn.Pass(
                self,
                "StartIngestion",
                comment="Placeholder state until service Lambdas are implemented.",
            )
        )

        self.workflow_role = iam.Role(
            self,
            "WorkflowExecutionRole",
            role_name=f"{prefix}-workflow",
            assumed_by=iam.ServicePrincipal("states.amazonaws.com"),
            description="Base execution role for Step Functions ingestion workflow.",
        )
        self.documents_bucket.grant_read_write(self.workflow_role)
        self.artifacts_bucket.grant_read_write(self.workflow_role)
        self.data_key.grant_encrypt_decrypt(self.workflow_role)

        self.ingestion_state_machine = sfn.StateMachine(
            self,
            "IngestionWorkflow",
            state_machine_name=f"{prefix}-ingestion",
            definition_body=sfn.DefinitionBody.from_chainable(workflow_definition),
            state_machine_type=sfn.StateMachineType.EXPRESS,
            role=self.workflow_role,
            logs=sfn.LogOptions(
                destination=workflow_log_group,
                level=sfn.LogLevel.ALL,
            ),
        )

        # ------------------------------------------------------------------
        # Lambda execution role
        # ------------------------------------------------------------------
        self.ingestion_lambda_role = iam.Role(
            self,
            "IngestionLambdaRole",
            role_name=f"{prefix}-ingestion-lambda",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            description="Shared execution role for ingestion Lambdas.",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AWSLambdaBasicExecutionRole"),
            ],
        )
        self.documents_bucket.grant_read_write(self.ingestion_lambda_role)
        self.artifacts_bucket.grant_read_write(self.ingestion_lambda_role)
        self.ingestion_queue.grant_send_messages(self.ingestion_lambda_role)
        self.data_key.grant_encrypt_decrypt(self.ingestion_lambda_role)
        self.ingestion_state_machine.grant_start_execution(self.ingestion_lambda_role)

    def _encrypted_bucket(self, construct_id: str, **overrides) -> s3.Bucket:
        props = dict(
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            encryption=s3.BucketEncryption.KMS,
            encryption_key=self.data_key,
            enforce_ssl=True,
            versioned=True,
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
        )
        props.update(overrides)
        return s3.Bucket(self, construct_id, **props)
