from unittest import TestCase

from parameterized import parameterized

from kubepreload.kinds import WorkloadKind


def _nested_pod(kind, *images):
    return {
        'kind': kind,
        'spec': {
            'template': {
                'spec': {
                    'containers': [{
                        'name': 'c{}'.format(i),
                        'image': image
                    } for i, image in enumerate(images)]
                }
            }
        }
    }


def _volumes(*images):
    return [{'name': 'v{}'.format(i), 'containerDisk': {'image': image}} for i, image in enumerate(images)]


class WorkloadKindTestCase(TestCase):

    @parameterized.expand([
        ('Deployment', WorkloadKind.DEPLOYMENT),
        ('DaemonSet', WorkloadKind.DAEMON_SET),
        ('ReplicaSet', WorkloadKind.REPLICA_SET),
        ('Job', WorkloadKind.JOB),
        ('StatefulSet', WorkloadKind.STATEFUL_SET),
        ('Pod', WorkloadKind.POD),
        ('VirtualMachineInstance', WorkloadKind.VIRTUAL_MACHINE_INSTANCE),
        ('VirtualMachine', WorkloadKind.VIRTUAL_MACHINE),
        ('VirtualMachineInstanceReplicaSet', WorkloadKind.VIRTUAL_MACHINE_INSTANCE_REPLICA_SET),
    ])
    def test_from_document(self, kind, expected):
        self.assertEqual(expected, WorkloadKind.from_document({'kind': kind}))

    @parameterized.expand([
        ({'kind': 'Service'},),
        ({'kind': 'deployment'},),
        ({},),
        ({'kind': None},),
        (None,),
        ('kind: Deployment',),
        ([{'kind': 'Deployment'}],),
    ])
    def test_from_document_unknown(self, document):
        self.assertIsNone(WorkloadKind.from_document(document))

    @parameterized.expand([('Deployment',), ('DaemonSet',), ('ReplicaSet',), ('Job',), ('StatefulSet',)])
    def test_nested_pod_kinds(self, kind):
        document = _nested_pod(kind, 'img1', 'img2', 'img3')
        self.assertEqual(['img1', 'img2', 'img3'], WorkloadKind(kind).extract_images(document))

    @parameterized.expand([('Deployment',), ('DaemonSet',), ('ReplicaSet',), ('Job',), ('StatefulSet',)])
    def test_nested_pod_kinds_keep_empty_images(self, kind):
        document = _nested_pod(kind, 'img1', '', None)
        self.assertEqual(['img1', '', ''], WorkloadKind(kind).extract_images(document))

    def test_nested_pod_without_containers(self):
        document = {'kind': 'Deployment', 'spec': {'template': {'spec': {}}}}
        self.assertEqual([], WorkloadKind.DEPLOYMENT.extract_images(document))

    def test_pod(self):
        document = {
            'kind': 'Pod',
            'spec': {
                'containers': [{
                    'name': 'a',
                    'image': 'img1'
                }, {
                    'name': 'b',
                    'image': ''
                }, {
                    'name': 'c'
                }, {
                    'name': 'd',
                    'image': 'img2'
                }]
            }
        }
        self.assertEqual(['img1', 'img2'], WorkloadKind.POD.extract_images(document))

    def test_pod_ignores_nested_template(self):
        document = _nested_pod('Pod', 'img1')
        self.assertEqual([], WorkloadKind.POD.extract_images(document))

    def test_virtual_machine_instance(self):
        volumes = _volumes('disk1', '', 'disk2')
        volumes.append({'name': 'cloudinit', 'cloudInitNoCloud': {'userData': '#cloud-config'}})
        document = {'kind': 'VirtualMachineInstance', 'spec': {'volumes': volumes}}
        self.assertEqual(['disk1', 'disk2'], WorkloadKind.VIRTUAL_MACHINE_INSTANCE.extract_images(document))

    @parameterized.expand([('VirtualMachine',), ('VirtualMachineInstanceReplicaSet',)])
    def test_nested_virtual_machine_kinds(self, kind):
        document = {'kind': kind, 'spec': {'template': {'spec': {'volumes': _volumes('disk1', None, 'disk1')}}}}
        self.assertEqual(['disk1', 'disk1'], WorkloadKind(kind).extract_images(document))

    def test_virtual_machine_ignores_top_level_volumes(self):
        document = {'kind': 'VirtualMachine', 'spec': {'volumes': _volumes('disk1')}}
        self.assertEqual([], WorkloadKind.VIRTUAL_MACHINE.extract_images(document))
