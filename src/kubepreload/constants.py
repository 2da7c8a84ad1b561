# Namespace hosting the preload DaemonSet
PRELOAD_NAMESPACE = 'preload-kube-burner'

# Label marking staging namespaces, every namespace carrying it is removed on cleanup
PRELOAD_NAMESPACE_LABEL = 'kube-burner-preload'
PRELOAD_NAMESPACE_LABEL_VALUE = 'true'
PRELOAD_NAMESPACE_SELECTOR = f'{PRELOAD_NAMESPACE_LABEL}={PRELOAD_NAMESPACE_LABEL_VALUE}'

# Name prefix and pod label of the preload DaemonSet
PRELOAD_NAME = 'preload'
PRELOAD_APP_LABEL = 'app'

PRELOAD_SLEEP_IMAGE = 'registry.k8s.io/pause:3.1'

# Upper bound for deleting the staging namespaces
CLEANUP_TIMEOUT = 5 * 60
CLEANUP_POLL_INTERVAL = 2
