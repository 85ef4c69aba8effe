# intentnet

Business logic for a peer-to-peer intent broadcast network. Participants publish
*intents* (requests for trades, swaps, transfers, data access and so on) on topics,
and service agents watch those topics, decide whether to bid, and route and process
intents through configurable stages.

The package has no runtime dependencies.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## What is inside

| Module | Purpose |
| --- | --- |
| `intentnet.types` | Core data types: `Intent`, `IntentStatus`, `DataTag`, `AgentConfig`, `AgentType`, `BidStrategy`, `IntentFilter`, `BidDecision`, `AgentStatus`, `AgentMetrics`, `IntentEvent`, `ErrorCode`, `IntentError` and `default_agent_config()` |
| `intentnet.monitoring_config` | `ConfigManager` for loading and validating intent monitoring configuration (`TransportConfig`, `IntentMonitoring`, `MonitoringFilter`, `StatisticsConfig`, `PerformanceConfig`, `ConfigError`) |
| `intentnet.subscriptions` | `TopicSubscriptionManager`: subscribes to topics by explicit list, wildcard pattern or all known topics, and keeps per-topic `TopicStatistics` |
| `intentnet.monitoring` | `IntentMonitoringManager`: combines configuration and subscriptions into `SubscriptionStatus` and `MonitoringStatistics` |
| `intentnet.bidding` | `BidDecisionManager`: computes cost, capability match and a competitive bid for an intent |
| `intentnet.routing` | `RoutingEngine` with `TypeBasedStrategy` and round-robin `LoadBalancingStrategy` |
| `intentnet.status` | `NetworkStatus`: peer and message counters, health rating and `StatusSnapshot` |
| `intentnet.topology` | `Topology`: peers, bidirectional connections and density statistics |
| `intentnet.handlers` | `HandlerRegistry`: priority-ordered intent handlers by type |
| `intentnet.network` | `NetworkManager`: applies `NetworkEvent`s to status and topology and reports metrics |
| `intentnet.pipeline` | `Pipeline` and its stages: validation, signature, enrichment, transformation and filtering |
| `intentnet.processor` | `Processor`: runs intents through the pipeline and the registered handlers, with retries and metrics |
| `intentnet.crypto` | `generate_intent_id()`, `hash_intent()`, `generate_random_bytes()` and `CryptoUtils` |

## Examples

### Monitoring configuration

```python
from intentnet.monitoring_config import ConfigManager, IntentMonitoring, TransportConfig

manager = ConfigManager()
config = manager.load_config(
    TransportConfig(intent_monitoring=IntentMonitoring(subscription_mode="explicit"))
)
print(config.explicit_topics[:3])
print(manager.subscription_topics())
```

An empty subscription mode becomes `all`. If the mode is not one of `all`,
`explicit`, `wildcard` or `disabled`, `load_config` raises `ConfigError`.

### Subscribing to topics

`TopicSubscriptionManager` needs a transport object with
`subscribe_to_topic(topic, handler)`, which returns something with a `cancel()`
method, and `pubsub_manager()`, which returns `None` or an object with
`peer_count(topic)`.

```python
from intentnet.monitoring_config import ConfigManager, IntentMonitoring
from intentnet.subscriptions import TopicSubscriptionManager


class Subscription:
    def cancel(self):
        pass


class InMemoryTransport:
    def __init__(self):
        self.handlers = {}

    def subscribe_to_topic(self, topic, handler):
        self.handlers[topic] = handler
        return Subscription()

    def pubsub_manager(self):
        return None


transport = InMemoryTransport()
config_manager = ConfigManager()
config_manager.set_config(
    IntentMonitoring(subscription_mode="explicit", explicit_topics=["intent-broadcast.trade"])
)

manager = TopicSubscriptionManager(transport, config_manager, print)
manager.start()
transport.handlers["intent-broadcast.trade"]({"id": "m1"})
print(manager.topic_stats("intent-broadcast.trade").message_count)  # 1
manager.stop()
```

In `wildcard` and `all` modes, `start()` also runs a background discovery thread;
there is no source of new topics yet, so discovery does not change the subscriptions.

### Deciding on a bid

```python
from intentnet.types import Intent, default_agent_config
from intentnet.bidding import BidDecisionManager

config = default_agent_config()
config.agent_id = "agent-1"
config.capabilities = ["trade"]

decision = BidDecisionManager(config).make_bid_decision(
    Intent(id="intent-1", type="trade", priority=3)
)
if decision.should_bid:
    print(decision.bid_amount, decision.confidence)
else:
    print("skipped:", decision.reason)
```

### Routing

```python
from intentnet.routing import RoutingEngine, TypeBasedStrategy, default_routing_config
from intentnet.types import Intent

strategy = TypeBasedStrategy()
strategy.add_route("trade", ["matcher-a", "matcher-b"])

engine = RoutingEngine(default_routing_config())
engine.add_strategy(strategy)
print(engine.route_intent(Intent(id="i1", type="trade")))
```

A strategy registered under the intent's type is used first, then the one named by
`RoutingConfig.default_strategy`. When routing fails, `RoutingError` is raised.

### Network events and topology

```python
from intentnet.network import NetworkEvent, NetworkManager
from intentnet.topology import Topology

network = NetworkManager()
network.handle_network_event(NetworkEvent(type="peer_connected", peer_id="peer-a"))
print(network.metrics()["connected_peers"], network.metrics()["network_health"])  # 1 poor

topology = Topology()
topology.add_connection("peer-a", "peer-b")
topology.add_connection("peer-b", "peer-c")
print(topology.connected_peers("peer-b"))
print(topology.snapshot().stats["density"])
```

### Processing intents

```python
from intentnet.handlers import HandlerRegistry
from intentnet.pipeline import Pipeline, EnrichmentStage, default_pipeline_config
from intentnet.processor import Processor, default_processor_config

pipeline = Pipeline(default_pipeline_config())
pipeline.add_stage(EnrichmentStage())

processor = Processor(pipeline, HandlerRegistry(), default_processor_config())
```

Handlers registered with `Processor.register_handler` are run in priority order,
each with retries. An intent is processed successfully when at least one handler
succeeds; otherwise `IntentError` is raised.

### Identifiers and hashes

```python
from intentnet.crypto import CryptoUtils, generate_intent_id, hash_intent
from intentnet.types import Intent

print(generate_intent_id())  # 32 hexadecimal characters
digest = hash_intent(Intent(id="i1", type="trade"))

utils = CryptoUtils()
print(utils.verify_hash(b"data", utils.compute_hash(b"data")))  # True
```

## What this package does not do

- It does not connect to a network. Topic subscriptions go through a transport
  object you supply, and `NetworkManager.network_status()` and
  `NetworkManager.connected_peers()` report an empty network because no peer host
  is attached.
- It does not sign intents or store keys. `SignatureStage` and `ValidationStage`
  call a signer or validator object you supply.
- It does not encrypt data; `CryptoUtils` only hashes, always with SHA-256.
- It has no command-line program or server.