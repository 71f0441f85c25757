"""Built-in application catalog: declaration order is detection and report order."""

from __future__ import annotations

from armprobe.catalog.models import ApplicationSignature, Category

# Version probes are listed most authoritative first; the first one that
# parses wins.
CATALOG: tuple[ApplicationSignature, ...] = (
    ApplicationSignature(
        key="postgresql",
        display_name="PostgreSQL",
        category=Category.DATABASE,
        process_patterns=("postgres", "postgresql"),
        package_patterns=("postgresql", "postgresql-server"),
        config_paths=("/etc/postgresql/", "/var/lib/pgsql/data/postgresql.conf"),
        version_probes=("postgres -V", "psql --version", "pg_config --version"),
        parser="postgresql",
        default_version="14",
    ),
    ApplicationSignature(
        key="redis",
        display_name="Redis",
        category=Category.DATABASE,
        process_patterns=("redis-server",),
        package_patterns=("redis-server", "redis"),
        config_paths=("/etc/redis/redis.conf", "/usr/local/etc/redis/redis.conf"),
        version_probes=("redis-server --version", "redis-cli --version"),
        parser="redis",
        default_version="6.2",
    ),
    ApplicationSignature(
        key="mongodb",
        display_name="MongoDB",
        category=Category.DATABASE,
        process_patterns=("mongod",),
        package_patterns=("mongodb-org", "mongodb-org-server", "mongodb"),
        config_paths=("/etc/mongod.conf", "/etc/mongodb.conf"),
        version_probes=("mongod --version", "mongo --version"),
        parser="mongodb",
        default_version="5.0",
    ),
    ApplicationSignature(
        key="mysql",
        display_name="MySQL / MariaDB",
        category=Category.DATABASE,
        process_patterns=("mysqld", "mariadbd"),
        package_patterns=("mysql-server", "mariadb-server"),
        config_paths=("/etc/mysql/my.cnf", "/etc/my.cnf"),
        version_probes=("mysql --version", "mysqld --version", "mariadbd --version"),
        parser="mysql",
        default_version="8.0",
    ),
    ApplicationSignature(
        key="kafka",
        display_name="Apache Kafka",
        category=Category.MESSAGE_QUEUE,
        process_patterns=("kafka.Kafka",),
        package_patterns=("kafka", "kafka-server"),
        config_paths=(
            "/etc/kafka/server.properties",
            "/opt/kafka/config/server.properties",
            "/usr/local/kafka/config/server.properties",
        ),
        version_probes=(
            "kafka-server-start.sh --version",
            # JAR filename carries the version
            "find /opt/kafka/libs -name 'kafka_*jar' | head -n1",
        ),
        parser="kafka",
        default_version="3.0",
    ),
    ApplicationSignature(
        key="aerospike",
        display_name="Aerospike",
        category=Category.DATABASE,
        process_patterns=("asd",),
        package_patterns=("aerospike", "aerospike-server"),
        config_paths=("/etc/aerospike/aerospike.conf",),
        version_probes=("asd --version", "asinfo -v 'build'"),
        parser="aerospike",
        default_version="5.0",
    ),
    ApplicationSignature(
        key="rabbitmq",
        display_name="RabbitMQ",
        category=Category.MESSAGE_QUEUE,
        process_patterns=("rabbitmq-server", "beam.smp"),
        package_patterns=("rabbitmq-server",),
        config_paths=("/etc/rabbitmq/rabbitmq.conf",),
        version_probes=("rabbitmqctl version", "rabbitmq-server -v"),
        parser="rabbitmq",
        default_version="3.9",
    ),
    ApplicationSignature(
        key="elasticsearch",
        display_name="Elasticsearch",
        category=Category.SEARCH_ENGINE,
        process_patterns=("elasticsearch",),
        package_patterns=("elasticsearch",),
        config_paths=(
            "/etc/elasticsearch/elasticsearch.yml",
            "/usr/local/etc/elasticsearch/elasticsearch.yml",
        ),
        version_probes=("elasticsearch --version", "curl -s localhost:9200"),
        parser="elasticsearch",
        default_version="7.10",
    ),
    ApplicationSignature(
        key="opensearch",
        display_name="OpenSearch",
        category=Category.SEARCH_ENGINE,
        process_patterns=("opensearch",),
        package_patterns=("opensearch",),
        config_paths=(
            "/etc/opensearch/opensearch.yml",
            "/usr/local/etc/opensearch/opensearch.yml",
        ),
        version_probes=("opensearch --version", "curl -s localhost:9200"),
        parser="opensearch",
        default_version="1.2",
    ),
    ApplicationSignature(
        key="docker",
        display_name="Docker",
        category=Category.CONTAINER_ORCHESTRATION,
        process_patterns=("dockerd", "docker"),
        package_patterns=("docker-ce", "docker-engine", "docker.io"),
        config_paths=("/etc/docker/daemon.json", "/var/run/docker.sock"),
        version_probes=("docker --version", "docker version"),
        parser="docker",
        default_version="20.10",
    ),
    ApplicationSignature(
        key="kubernetes",
        display_name="Kubernetes",
        category=Category.CONTAINER_ORCHESTRATION,
        process_patterns=("kubelet", "kube-apiserver", "k3s"),
        package_patterns=("kubernetes-cni", "kubeadm", "kubectl", "k3s"),
        config_paths=(
            "/etc/kubernetes/",
            "/var/lib/kubelet/config.yaml",
            "/etc/rancher/k3s/",
        ),
        version_probes=("kubectl version --client", "kubelet --version", "k3s --version"),
        parser="kubernetes",
        default_version="1.23",
    ),
    ApplicationSignature(
        key="jenkins",
        display_name="Jenkins",
        category=Category.CI_CD,
        process_patterns=("jenkins",),
        package_patterns=("jenkins",),
        config_paths=("/etc/default/jenkins", "/var/lib/jenkins/config.xml"),
        version_probes=(
            "jenkins --version",
            "java -jar /usr/share/jenkins/jenkins.war --version",
        ),
        parser="jenkins",
        default_version="2.346",
    ),
    ApplicationSignature(
        key="gitlab_runner",
        display_name="GitLab Runner",
        category=Category.CI_CD,
        process_patterns=("gitlab-runner",),
        package_patterns=("gitlab-runner",),
        config_paths=("/etc/gitlab-runner/config.toml",),
        version_probes=("gitlab-runner --version",),
        parser="gitlab_runner",
        default_version="14.0",
    ),
)


def get_signature(key: str, catalog: tuple[ApplicationSignature, ...] = CATALOG) -> ApplicationSignature:
    """Look up a signature by key."""
    for signature in catalog:
        if signature.key == key:
            return signature
    raise KeyError(key)
